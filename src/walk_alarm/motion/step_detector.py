"""Step detection from accelerometer magnitude threshold crossings."""

from typing import Optional

import structlog

from ..config import Settings, settings as default_settings
from ..models import StepEvent
from .. import metrics

logger = structlog.get_logger(__name__)


class StepDetector:
    """Two-state peak/valley detector driven by a dynamic threshold.

    A step is one excursion above the threshold followed by a fall back below
    it. The excursion must last a plausible time and must not arrive sooner
    than the minimum step interval after the previous emitted step.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or default_settings
        self.above_threshold = False
        self.last_peak_time: Optional[float] = None
        self.last_step_time: Optional[float] = None
        self.peak_magnitude = 0.0

    def process(
        self,
        magnitude: float,
        baseline: float,
        threshold: float,
        timestamp_ms: float,
    ) -> Optional[StepEvent]:
        """Advance the state machine by one sample and return a step if one completed."""
        if self.above_threshold:
            self.peak_magnitude = max(self.peak_magnitude, magnitude)

        # Rising edge
        if (
            magnitude > threshold
            and not self.above_threshold
            and magnitude - baseline > self.settings.min_peak_deviation
        ):
            self.above_threshold = True
            self.last_peak_time = timestamp_ms
            self.peak_magnitude = magnitude
            return None

        # Falling edge completes the excursion
        if magnitude < threshold and self.above_threshold:
            self.above_threshold = False
            excursion_ms = timestamp_ms - self.last_peak_time

            if not (
                self.settings.min_excursion_ms
                <= excursion_ms
                <= self.settings.max_excursion_ms
            ):
                logger.debug("Discarded excursion as noise", excursion_ms=excursion_ms)
                return None

            if (
                self.last_step_time is not None
                and timestamp_ms - self.last_step_time < self.settings.min_step_interval_ms
            ):
                logger.debug(
                    "Discarded bounce",
                    since_last_step_ms=timestamp_ms - self.last_step_time,
                )
                return None

            self.last_step_time = timestamp_ms
            metrics.steps_detected.inc()
            return StepEvent(
                timestamp_ms=timestamp_ms,
                peak_magnitude=self.peak_magnitude,
                excursion_ms=excursion_ms,
            )

        return None

    def reset(self) -> None:
        self.above_threshold = False
        self.last_peak_time = None
        self.last_step_time = None
        self.peak_magnitude = 0.0
