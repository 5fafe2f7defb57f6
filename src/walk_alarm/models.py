"""Data models for step validation and alarm scheduling."""

from datetime import date, datetime
from enum import Enum
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field, field_validator

T = TypeVar("T")

DAY_NAMES = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]


class AccelerationSample(BaseModel):
    """One accelerometer reading in g units."""
    x: float
    y: float
    z: float
    timestamp_ms: float = Field(description="Monotonic timestamp in milliseconds")


class StepEvent(BaseModel):
    """One completed above/below threshold excursion."""
    timestamp_ms: float
    peak_magnitude: float
    excursion_ms: float = Field(ge=0.0)


class RejectionReason(str, Enum):
    """Why the anti-cheat validator refused a step."""
    TOO_FAST = "too_fast"
    VERTICAL_ONLY = "vertical_only"
    TOO_REGULAR = "too_regular"
    TOO_ERRATIC = "too_erratic"
    SINGLE_AXIS_SHAKE = "single_axis_shake"

    @property
    def message(self) -> str:
        return _REJECTION_MESSAGES[self]


_REJECTION_MESSAGES = {
    RejectionReason.TOO_FAST: "Too fast! Walk at a normal pace",
    RejectionReason.VERTICAL_ONLY: "Walk around, don't just shake!",
    RejectionReason.TOO_REGULAR: "Movement too robotic! Walk naturally",
    RejectionReason.TOO_ERRATIC: "Inconsistent rhythm! Walk steadily",
    RejectionReason.SINGLE_AXIS_SHAKE: "Shaking detected! Walk with your phone",
}


class ValidationResult(BaseModel):
    """Outcome of the anti-cheat check for one step event."""
    valid: bool
    reason: Optional[RejectionReason] = None
    is_confident_walk: bool = False
    timestamp_ms: float
    interval_ms: Optional[float] = Field(
        default=None, description="Time since the previous raw step"
    )
    rhythm_variance: float = Field(description="Coefficient of variation of recent intervals")
    rhythm_reset: bool = Field(
        default=False, description="Walking resumed after a pause longer than the max interval"
    )

    @property
    def message(self) -> str:
        return self.reason.message if self.reason else ""


class AlarmConfig(BaseModel):
    """One recurring alarm definition, persisted as a flat record."""
    id: str = Field(default="main", min_length=1)
    hour: int = Field(ge=0, le=23)
    minute: int = Field(ge=0, le=59)
    enabled: bool = True
    required_steps: int = Field(default=10, gt=0)
    label: str = "Wake Up"
    days: List[int] = Field(
        default_factory=lambda: [1, 2, 3, 4, 5],
        description="Recurrence weekdays, 0 = Sunday through 6 = Saturday",
    )
    last_triggered_date: Optional[str] = Field(
        default=None, description="ISO calendar date of the last trigger"
    )

    @field_validator("days")
    @classmethod
    def validate_days(cls, v: List[int]) -> List[int]:
        for day in v:
            if day < 0 or day > 6:
                raise ValueError(f"Day must be between 0 (Sunday) and 6 (Saturday), got {day}")
        return sorted(set(v))

    @field_validator("last_triggered_date")
    @classmethod
    def validate_last_triggered_date(cls, v: Optional[str]) -> Optional[str]:
        if v is not None:
            date.fromisoformat(v)
        return v


class TriggerDecision(BaseModel):
    """Scheduler output for one poll."""
    should_trigger: bool
    alarm: Optional[AlarmConfig] = None


class TimeUntilAlarm(BaseModel):
    """Time remaining until the next alarm occurrence."""
    hours: int
    minutes: int
    seconds: int
    total_seconds: int
    fires_at: datetime


class WakeUpLogEntry(BaseModel):
    """One completed (or abandoned) wake-up."""
    date: datetime
    steps_walked: int = Field(ge=0)
    success: bool = True


class StoreResult(BaseModel, Generic[T]):
    """Success or failure of a persistence operation."""
    ok: bool
    value: Optional[T] = None
    error: Optional[str] = None

    @classmethod
    def success(cls, value: Optional[T] = None) -> "StoreResult[T]":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: str) -> "StoreResult[T]":
        return cls(ok=False, error=error)
