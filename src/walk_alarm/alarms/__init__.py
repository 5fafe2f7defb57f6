"""
Alarm scheduling, persistence and polling
"""

from walk_alarm.alarms.clock import Clock, SystemClock
from walk_alarm.alarms.monitor import AlarmMonitor
from walk_alarm.alarms.repository import AlarmRepository
from walk_alarm.alarms.scheduler import (
    calendar_date_string,
    format_alarm_time,
    get_time_until_alarm,
    mark_triggered,
    next_occurrence,
    should_trigger,
    weekday_of,
)
from walk_alarm.alarms.store import InMemoryKeyValueStore, JsonFileKeyValueStore, KeyValueStore

__all__ = [
    "AlarmMonitor",
    "AlarmRepository",
    "Clock",
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "KeyValueStore",
    "SystemClock",
    "calendar_date_string",
    "format_alarm_time",
    "get_time_until_alarm",
    "mark_triggered",
    "next_occurrence",
    "should_trigger",
    "weekday_of",
]
