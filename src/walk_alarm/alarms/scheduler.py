"""
Recurring alarm scheduling

Pure functions deciding whether an alarm fires at a given wall-clock time and
how long remains until its next occurrence. Weekdays follow the 0 = Sunday
convention used by the persisted alarm records.
"""

import math
from datetime import datetime, timedelta
from typing import Optional

from ..config import Settings, settings as default_settings
from ..models import AlarmConfig, TimeUntilAlarm, TriggerDecision


def weekday_of(moment: datetime) -> int:
    """Weekday with 0 = Sunday through 6 = Saturday."""
    return moment.isoweekday() % 7


def calendar_date_string(moment: datetime) -> str:
    """Dedup key for the once-per-day trigger."""
    return moment.date().isoformat()


def format_alarm_time(hour: int, minute: int) -> str:
    """12-hour clock label, e.g. ``6:30 AM``."""
    period = "PM" if hour >= 12 else "AM"
    display_hour = hour % 12 or 12
    return f"{display_hour}:{minute:02d} {period}"


def should_trigger(
    alarm: AlarmConfig,
    now: datetime,
    settings: Optional[Settings] = None,
) -> TriggerDecision:
    """
    Decide whether the alarm fires at ``now``

    The alarm fires on a recurrence day, at most once per calendar day, within
    its configured hour from its minute through ``trigger_window_minutes``
    minutes later, so a coarse poll cannot miss it.
    """
    settings = settings or default_settings

    if not alarm.enabled:
        return TriggerDecision(should_trigger=False, alarm=alarm)

    if weekday_of(now) not in alarm.days:
        return TriggerDecision(should_trigger=False, alarm=alarm)

    if alarm.last_triggered_date == calendar_date_string(now):
        return TriggerDecision(should_trigger=False, alarm=alarm)

    is_right_time = (
        now.hour == alarm.hour
        and 0 <= now.minute - alarm.minute <= settings.trigger_window_minutes
    )

    return TriggerDecision(should_trigger=is_right_time, alarm=alarm)


def mark_triggered(alarm: AlarmConfig, today: datetime) -> AlarmConfig:
    """Copy of the alarm stamped as triggered on ``today``."""
    return alarm.model_copy(update={"last_triggered_date": calendar_date_string(today)})


def next_occurrence(alarm: AlarmConfig, now: datetime) -> Optional[datetime]:
    """Next instant the alarm is due, or None when it has no recurrence days."""
    if not alarm.days:
        return None

    fires_at = now.replace(hour=alarm.hour, minute=alarm.minute, second=0, microsecond=0)
    if (
        fires_at <= now
        or alarm.last_triggered_date == calendar_date_string(now)
        or weekday_of(now) not in alarm.days
    ):
        current_day = weekday_of(now)
        for days_ahead in range(1, 8):
            if (current_day + days_ahead) % 7 in alarm.days:
                fires_at += timedelta(days=days_ahead)
                break

    return fires_at


def get_time_until_alarm(alarm: AlarmConfig, now: datetime) -> Optional[TimeUntilAlarm]:
    """Time remaining until the next occurrence, or None if there is none."""
    fires_at = next_occurrence(alarm, now)
    if fires_at is None:
        return None

    total_seconds = math.floor((fires_at - now).total_seconds())
    return TimeUntilAlarm(
        hours=total_seconds // 3600,
        minutes=(total_seconds % 3600) // 60,
        seconds=total_seconds % 60,
        total_seconds=total_seconds,
        fires_at=fires_at,
    )
