"""Walk session wiring the sensor stream through detection, validation and progress."""

from dataclasses import dataclass
from typing import Callable, Optional

import structlog

from ..config import Settings, settings as default_settings
from ..errors import SensorUnavailableError
from ..models import AccelerationSample, ValidationResult
from .magnitude import RollingMagnitudeTracker, sample_magnitude
from .progress import ProgressTracker
from .sensors import SensorSource
from .step_detector import StepDetector
from .validator import AntiCheatValidator

logger = structlog.get_logger(__name__)


@dataclass
class SessionSnapshot:
    """Debug view of a walk session."""

    magnitude: float
    baseline: float
    threshold: float
    rhythm_variance: float
    average_interval_ms: float
    since_last_step_ms: Optional[float]
    valid_steps: int
    target_steps: int
    confident_walk: bool


class WalkSession:
    """Owns all per-session state for one dismissal walk.

    Samples are processed synchronously inside the sensor callback. The sensor
    subscription is held only between ``start()`` and ``stop()``; using the
    session as a context manager guarantees the subscription is released.
    """

    def __init__(
        self,
        sensor: SensorSource,
        target_steps: int,
        settings: Optional[Settings] = None,
        on_step: Optional[Callable[[ValidationResult, int], None]] = None,
        on_target_reached: Optional[Callable[[int], None]] = None,
    ):
        self.settings = settings or default_settings
        self.sensor = sensor
        self.on_step = on_step
        self.tracker = RollingMagnitudeTracker(self.settings)
        self.detector = StepDetector(self.settings)
        self.validator = AntiCheatValidator(self.settings)
        self.progress = ProgressTracker(target_steps, on_target_reached)
        self.last_magnitude = 0.0
        self.last_sample_time: Optional[float] = None
        self.last_result: Optional[ValidationResult] = None
        self._handle: Optional[int] = None

    @property
    def active(self) -> bool:
        return self._handle is not None

    @property
    def step_count(self) -> int:
        return self.progress.valid_step_count

    @property
    def target_reached(self) -> bool:
        return self.progress.target_reached

    def start(self) -> None:
        """Subscribe to the sensor. Calling it on an active session does nothing."""
        if self.active:
            return
        if not self.sensor.is_available():
            raise SensorUnavailableError("Accelerometer is not available on this device")

        self.sensor.set_sample_interval(self.settings.sample_interval_ms)
        self._handle = self.sensor.subscribe(self.process_sample)
        logger.info(
            "Walk session started",
            target_steps=self.progress.target_steps,
            sample_interval_ms=self.settings.sample_interval_ms,
        )

    def stop(self) -> None:
        """Release the sensor subscription. Safe to call more than once."""
        if self._handle is None:
            return
        handle, self._handle = self._handle, None
        self.sensor.unsubscribe(handle)
        logger.info("Walk session stopped", valid_steps=self.step_count)

    def __enter__(self) -> "WalkSession":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    def process_sample(self, sample: AccelerationSample) -> Optional[ValidationResult]:
        """Run one sample through the pipeline. Returns a result when a step was judged."""
        magnitude = sample_magnitude(sample)
        self.last_magnitude = magnitude
        self.last_sample_time = sample.timestamp_ms

        self.tracker.push(magnitude)
        self.validator.record_sample(sample)

        event = self.detector.process(
            magnitude,
            self.tracker.baseline(),
            self.tracker.threshold(),
            sample.timestamp_ms,
        )
        if event is None:
            return None

        result = self.validator.validate(event)
        self.last_result = result
        self.progress.record(result)

        if self.on_step:
            self.on_step(result, self.step_count)
        return result

    def reset(self) -> None:
        """Explicit session restart: all windows, timers and the step count go back to zero."""
        self.tracker.reset()
        self.detector.reset()
        self.validator.reset()
        self.progress.reset()
        self.last_magnitude = 0.0
        self.last_sample_time = None
        self.last_result = None

    def snapshot(self) -> SessionSnapshot:
        since_last_step = None
        if self.last_sample_time is not None and self.detector.last_step_time is not None:
            since_last_step = self.last_sample_time - self.detector.last_step_time

        return SessionSnapshot(
            magnitude=self.last_magnitude,
            baseline=self.tracker.baseline(),
            threshold=self.tracker.threshold(),
            rhythm_variance=self.validator.rhythm_variance(),
            average_interval_ms=self.validator.average_interval(),
            since_last_step_ms=since_last_step,
            valid_steps=self.step_count,
            target_steps=self.progress.target_steps,
            confident_walk=bool(self.last_result and self.last_result.is_confident_walk),
        )
