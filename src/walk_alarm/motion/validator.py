"""Anti-cheat validation of detected steps."""

from collections import deque
from typing import Optional

import numpy as np
import structlog

from ..config import Settings, settings as default_settings
from ..models import AccelerationSample, RejectionReason, StepEvent, ValidationResult
from .. import metrics

logger = structlog.get_logger(__name__)

_AXIS_INDEX = {"x": 0, "y": 1, "z": 2}


class AntiCheatValidator:
    """Decides whether step events come from walking rather than shaking.

    Checks run in a fixed order and stop at the first failure:

    1. interval floor since the previous valid step
    2. interval ceiling, which resets the rhythm history instead of rejecting
    3. lateral movement floor (vertical-only bouncing)
    4. rhythm variance band (too regular or too erratic)
    5. single-axis dominance of the recent non-gravity movement variance

    Rejected steps still feed the timing and axis history, so the validator
    recovers as soon as real walking resumes.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or default_settings
        self.intervals = deque(maxlen=self.settings.rhythm_history_size)
        self.axis_history = deque(maxlen=self.settings.axis_history_size)
        self.last_raw_step_time: Optional[float] = None
        self.last_valid_step_time: Optional[float] = None
        self.consecutive_valid = 0
        self._lateral_index = _AXIS_INDEX[self.settings.lateral_axis]
        gravity_index = _AXIS_INDEX[self.settings.gravity_axis]
        self._movement_indices = [i for i in range(3) if i != gravity_index]

    def record_sample(self, sample: AccelerationSample) -> None:
        """Add one raw sample to the per-axis movement history."""
        self.axis_history.append((sample.x, sample.y, sample.z))

    def validate(self, event: StepEvent) -> ValidationResult:
        """Judge one step event."""
        now = event.timestamp_ms
        interval = None
        if self.last_raw_step_time is not None:
            interval = now - self.last_raw_step_time
        self.last_raw_step_time = now

        rhythm_reset = False
        if interval is not None:
            if interval > self.settings.max_step_interval_ms:
                # Walking resumed after a pause
                self.intervals.clear()
                self.consecutive_valid = 0
                rhythm_reset = True
            else:
                self.intervals.append(interval)

        reason = self._check(now)
        if reason is None:
            self.last_valid_step_time = now
            self.consecutive_valid += 1
        else:
            self.consecutive_valid = 0

        result = ValidationResult(
            valid=reason is None,
            reason=reason,
            is_confident_walk=self.consecutive_valid >= self.settings.confident_walk_steps,
            timestamp_ms=now,
            interval_ms=interval,
            rhythm_variance=self.rhythm_variance(),
            rhythm_reset=rhythm_reset,
        )

        metrics.steps_validated.labels(
            outcome="valid" if result.valid else reason.value
        ).inc()
        if result.valid:
            logger.debug("Step accepted", interval_ms=interval, confident=result.is_confident_walk)
        else:
            logger.info("Step rejected", reason=reason.value, interval_ms=interval)

        return result

    def _check(self, now: float) -> Optional[RejectionReason]:
        if (
            self.last_valid_step_time is not None
            and now - self.last_valid_step_time < self.settings.min_step_interval_ms
        ):
            return RejectionReason.TOO_FAST

        if self.lateral_movement() < self.settings.min_lateral_movement:
            return RejectionReason.VERTICAL_ONLY

        if len(self.intervals) >= self.settings.min_rhythm_intervals:
            cv = self.rhythm_variance()
            if cv < self.settings.min_rhythm_variance:
                return RejectionReason.TOO_REGULAR
            if cv > self.settings.max_rhythm_variance:
                return RejectionReason.TOO_ERRATIC

        if self.is_single_axis_dominant():
            return RejectionReason.SINGLE_AXIS_SHAKE

        return None

    def lateral_movement(self) -> float:
        """Mean absolute value of the lateral axis over the movement history."""
        if not self.axis_history:
            return 0.0
        lateral = np.abs([s[self._lateral_index] for s in self.axis_history])
        return float(np.mean(lateral))

    def rhythm_variance(self) -> float:
        """Mean absolute deviation of the step intervals divided by their mean."""
        if len(self.intervals) < self.settings.min_rhythm_intervals:
            return self.settings.rhythm_variance_fallback
        intervals = np.array(self.intervals, dtype=float)
        avg = intervals.mean()
        if avg <= 0:
            return self.settings.rhythm_variance_fallback
        return float(np.mean(np.abs(intervals - avg)) / avg)

    def average_interval(self) -> float:
        if not self.intervals:
            return 0.0
        return float(np.mean(self.intervals))

    def is_single_axis_dominant(self) -> bool:
        """True when one of the two non-gravity axes holds most of their recent variance."""
        if len(self.axis_history) < self.settings.axis_dominance_min_samples:
            return False

        recent = np.array(list(self.axis_history)[-self.settings.axis_dominance_window:])
        recent = recent[:, self._movement_indices]
        variances = recent.var(axis=0)
        total = variances.sum()
        if total <= 0:
            return False

        return float(variances.max() / total) > self.settings.axis_dominance_ratio

    def reset(self) -> None:
        self.intervals.clear()
        self.axis_history.clear()
        self.last_raw_step_time = None
        self.last_valid_step_time = None
        self.consecutive_valid = 0
