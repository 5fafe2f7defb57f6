"""Unit tests for recurring alarm scheduling."""

from datetime import timedelta

import pytest

from walk_alarm.alarms import (
    calendar_date_string,
    format_alarm_time,
    get_time_until_alarm,
    mark_triggered,
    next_occurrence,
    should_trigger,
    weekday_of,
)


def at(day, hour, minute, second=0):
    return day.replace(hour=hour, minute=minute, second=second)


class TestWeekday:
    def test_sunday_is_zero(self, monday):
        assert weekday_of(monday) == 1
        assert weekday_of(monday - timedelta(days=1)) == 0
        assert weekday_of(monday + timedelta(days=5)) == 6

    def test_calendar_date_string(self, monday):
        assert calendar_date_string(at(monday, 23, 59)) == "2024-01-01"


class TestShouldTrigger:
    def test_fires_inside_window(self, weekday_alarm, monday):
        assert should_trigger(weekday_alarm, at(monday, 6, 30)).should_trigger is True
        assert should_trigger(weekday_alarm, at(monday, 6, 31, 59)).should_trigger is True

    def test_before_and_after_window(self, weekday_alarm, monday):
        assert should_trigger(weekday_alarm, at(monday, 6, 29, 59)).should_trigger is False
        assert should_trigger(weekday_alarm, at(monday, 6, 32)).should_trigger is False

    def test_once_per_day(self, weekday_alarm, monday):
        now = at(monday, 6, 31)
        marked = mark_triggered(weekday_alarm, now)
        assert marked.last_triggered_date == "2024-01-01"
        assert weekday_alarm.last_triggered_date is None
        assert should_trigger(marked, now).should_trigger is False

        tuesday = now + timedelta(days=1)
        tuesday = tuesday.replace(minute=30)
        assert should_trigger(marked, tuesday).should_trigger is True

    def test_disabled_alarm(self, weekday_alarm, monday):
        disabled = weekday_alarm.model_copy(update={"enabled": False})
        assert should_trigger(disabled, at(monday, 6, 30)).should_trigger is False

    def test_not_on_weekend(self, weekday_alarm, monday):
        saturday = monday + timedelta(days=5)
        sunday = monday - timedelta(days=1)
        assert should_trigger(weekday_alarm, at(saturday, 6, 30)).should_trigger is False
        assert should_trigger(weekday_alarm, at(sunday, 6, 30)).should_trigger is False

    def test_window_stays_inside_the_alarm_hour(self, weekday_alarm, monday):
        alarm = weekday_alarm.model_copy(update={"minute": 59})
        assert should_trigger(alarm, at(monday, 6, 59)).should_trigger is True
        assert should_trigger(alarm, at(monday, 7, 0)).should_trigger is False

    def test_wrong_hour_same_minute(self, weekday_alarm, monday):
        assert should_trigger(weekday_alarm, at(monday, 7, 30)).should_trigger is False
        assert should_trigger(weekday_alarm, at(monday, 5, 31)).should_trigger is False

    def test_window_is_configurable(self, weekday_alarm, monday, settings):
        wide = settings.model_copy(update={"trigger_window_minutes": 5})
        assert should_trigger(weekday_alarm, at(monday, 6, 35), wide).should_trigger is True
        assert should_trigger(weekday_alarm, at(monday, 6, 36), wide).should_trigger is False

    def test_decision_carries_alarm(self, weekday_alarm, monday):
        decision = should_trigger(weekday_alarm, at(monday, 6, 30))
        assert decision.alarm == weekday_alarm


class TestTimeUntilAlarm:
    def test_later_today(self, weekday_alarm, monday):
        remaining = get_time_until_alarm(weekday_alarm, at(monday, 5, 0))
        assert (remaining.hours, remaining.minutes, remaining.seconds) == (1, 30, 0)
        assert remaining.total_seconds == 5400
        assert remaining.fires_at == at(monday, 6, 30)

    def test_already_passed_today(self, weekday_alarm, monday):
        remaining = get_time_until_alarm(weekday_alarm, at(monday, 7, 0))
        assert (remaining.hours, remaining.minutes) == (23, 30)
        assert remaining.total_seconds == 84600

    def test_seconds_are_floored(self, weekday_alarm, monday):
        now = at(monday, 6, 29).replace(second=30, microsecond=500000)
        remaining = get_time_until_alarm(weekday_alarm, now)
        assert remaining.total_seconds == 29
        assert remaining.seconds == 29

    def test_friday_evening_skips_weekend(self, weekday_alarm, monday):
        friday = monday + timedelta(days=4)
        remaining = get_time_until_alarm(weekday_alarm, at(friday, 22, 0))
        assert remaining.fires_at == at(monday + timedelta(days=7), 6, 30)
        assert remaining.total_seconds == (2 * 24 + 8) * 3600 + 30 * 60

    def test_triggered_today_points_to_next_day(self, weekday_alarm, monday):
        marked = mark_triggered(weekday_alarm, at(monday, 6, 30))
        assert next_occurrence(marked, at(monday, 5, 0)) == at(monday + timedelta(days=1), 6, 30)

    def test_non_recurrence_day_searches_forward(self, weekday_alarm, monday):
        saturday = monday + timedelta(days=5)
        # Saturday 05:00 is before the alarm time but not a recurrence day
        assert next_occurrence(weekday_alarm, at(saturday, 5, 0)) == at(monday + timedelta(days=7), 6, 30)

    def test_no_recurrence_days(self, weekday_alarm, monday):
        alarm = weekday_alarm.model_copy(update={"days": []})
        assert next_occurrence(alarm, at(monday, 5, 0)) is None
        assert get_time_until_alarm(alarm, at(monday, 5, 0)) is None

    def test_single_day_wraps_a_full_week(self, weekday_alarm, monday):
        alarm = weekday_alarm.model_copy(update={"days": [1]})
        assert next_occurrence(alarm, at(monday, 7, 0)) == at(monday + timedelta(days=7), 6, 30)


@pytest.mark.parametrize("hour,minute,expected", [
    (0, 0, "12:00 AM"),
    (6, 5, "6:05 AM"),
    (12, 30, "12:30 PM"),
    (23, 59, "11:59 PM"),
])
def test_format_alarm_time(hour, minute, expected):
    assert format_alarm_time(hour, minute) == expected
