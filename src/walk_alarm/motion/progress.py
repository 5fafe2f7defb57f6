"""Valid step accumulation against a target."""

from typing import Callable, Optional

import structlog

from ..models import ValidationResult
from .. import metrics

logger = structlog.get_logger(__name__)


class ProgressTracker:
    """Counts valid steps and fires a one-shot callback when the target is met."""

    def __init__(
        self,
        target_steps: int,
        on_target_reached: Optional[Callable[[int], None]] = None,
    ):
        if target_steps <= 0:
            raise ValueError(f"target_steps must be positive, got {target_steps}")
        self.target_steps = target_steps
        self.on_target_reached = on_target_reached
        self.valid_step_count = 0
        self.target_reached = False

    def record(self, result: ValidationResult) -> bool:
        """Count a validation result. Returns True only on the step that reaches the target."""
        if not result.valid:
            return False

        self.valid_step_count += 1
        if self.target_reached or self.valid_step_count < self.target_steps:
            return False

        self.target_reached = True
        metrics.targets_reached.inc()
        logger.info("Step target reached", steps=self.valid_step_count, target=self.target_steps)
        if self.on_target_reached:
            self.on_target_reached(self.valid_step_count)
        return True

    @property
    def remaining(self) -> int:
        return max(self.target_steps - self.valid_step_count, 0)

    @property
    def fraction(self) -> float:
        return min(self.valid_step_count / self.target_steps, 1.0)

    def reset(self) -> None:
        self.valid_step_count = 0
        self.target_reached = False
