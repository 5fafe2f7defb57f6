"""Prometheus metrics for step validation and alarm polling"""
from prometheus_client import Counter, Histogram

# Step pipeline
steps_detected = Counter(
    'walk_alarm_steps_detected_total',
    'Raw step events emitted by the step detector'
)

steps_validated = Counter(
    'walk_alarm_steps_validated_total',
    'Step events judged by the anti-cheat validator',
    ['outcome']
)

targets_reached = Counter(
    'walk_alarm_targets_reached_total',
    'Walk sessions that reached their step target'
)

# Alarm polling
polls = Counter(
    'walk_alarm_polls_total',
    'Alarm checks performed'
)

polls_skipped = Counter(
    'walk_alarm_polls_skipped_total',
    'Alarm checks skipped by the reentrancy guard',
    ['reason']
)

alarms_triggered = Counter(
    'walk_alarm_alarms_triggered_total',
    'Alarms that started ringing'
)

store_errors = Counter(
    'walk_alarm_store_errors_total',
    'Failed key-value store operations',
    ['operation']
)

poll_duration = Histogram(
    'walk_alarm_poll_duration_seconds',
    'Time spent in one alarm check'
)
