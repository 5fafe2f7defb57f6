"""
Settings for the walk alarm engine
"""

from enum import Enum

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class MarkTriggeredFailurePolicy(str, Enum):
    """What the monitor does when persisting the triggered date fails."""

    RETRY_NEXT_POLL = "retry_next_poll"
    ASSUME_TRIGGERED = "assume_triggered"


class Settings(BaseSettings):
    """Application settings with WALK_ALARM_ prefix."""

    model_config = SettingsConfigDict(
        env_prefix="WALK_ALARM_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Service settings
    service_name: str = Field(
        default="walk-alarm",
        description="Name of the service for logging and metrics",
    )
    environment: str = Field(default="development", description="Deployment environment")
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="json", description="Log format: json or text")
    debug: bool = Field(default=False, description="Force DEBUG logging regardless of log_level")

    # Sensor settings
    sample_interval_ms: int = Field(
        default=40, gt=0, description="Accelerometer update interval"
    )

    # Magnitude window settings
    magnitude_window_size: int = Field(
        default=30, gt=0, description="Magnitudes kept for the moving baseline"
    )
    baseline_min_samples: int = Field(
        default=10, gt=0, description="Samples needed before the baseline is trusted"
    )
    default_baseline: float = Field(
        default=1.0, gt=0.0, description="Baseline used while the window is warming up"
    )
    threshold_multiplier: float = Field(
        default=1.08, gt=1.0, le=1.5, description="Step threshold relative to baseline"
    )

    # Step detection settings
    min_peak_deviation: float = Field(
        default=0.12, ge=0.0, description="Minimum magnitude above baseline for a peak"
    )
    min_excursion_ms: int = Field(default=50, ge=0, description="Shortest plausible peak")
    max_excursion_ms: int = Field(default=400, gt=0, description="Longest plausible peak")
    min_step_interval_ms: int = Field(
        default=280, gt=0, description="Minimum ms between steps (fast walk)"
    )
    max_step_interval_ms: int = Field(
        default=1200, gt=0, description="Maximum ms between steps before rhythm resets"
    )

    # Anti-cheat settings
    rhythm_history_size: int = Field(default=10, gt=0)
    axis_history_size: int = Field(default=20, gt=0)
    axis_dominance_window: int = Field(default=15, gt=0)
    axis_dominance_min_samples: int = Field(default=10, gt=0)
    lateral_axis: str = Field(
        default="x", pattern="^[xyz]$", description="Axis carrying side-to-side sway"
    )
    gravity_axis: str = Field(
        default="y", pattern="^[xyz]$", description="Axis aligned with gravity, left out of the dominance check"
    )
    min_lateral_movement: float = Field(
        default=0.15, ge=0.0, description="Mean |lateral| below this is vertical-only motion"
    )
    min_rhythm_intervals: int = Field(default=3, gt=0)
    min_rhythm_variance: float = Field(
        default=0.05, ge=0.0, description="Below this the rhythm is mechanically regular"
    )
    max_rhythm_variance: float = Field(
        default=0.6, gt=0.0, description="Above this the rhythm is erratic shaking"
    )
    rhythm_variance_fallback: float = Field(
        default=0.3, ge=0.0, description="Reported variance before enough intervals exist"
    )
    axis_dominance_ratio: float = Field(
        default=0.85, gt=0.0, le=1.0, description="Share of variance that marks single-axis shaking"
    )
    confident_walk_steps: int = Field(default=3, gt=0)

    # Scheduler settings
    alarm_id: str = Field(default="main", description="Alarm record watched by the monitor")
    poll_interval_seconds: float = Field(default=10.0, gt=0.0)
    trigger_window_minutes: int = Field(
        default=1, ge=0, description="Minutes after the alarm time that still fire"
    )
    wake_log_capacity: int = Field(default=30, gt=0)
    store_path: str = Field(default="walk_alarm_store.json")
    mark_triggered_failure_policy: MarkTriggeredFailurePolicy = Field(
        default=MarkTriggeredFailurePolicy.RETRY_NEXT_POLL
    )

    @model_validator(mode="after")
    def validate_axes(self) -> "Settings":
        if self.lateral_axis == self.gravity_axis:
            raise ValueError("lateral_axis and gravity_axis must differ")
        return self


settings = Settings()
