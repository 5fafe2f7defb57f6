"""Exceptions raised by the walk alarm engine."""


class WalkAlarmError(Exception):
    """Base class for engine errors."""


class SensorUnavailableError(WalkAlarmError):
    """The accelerometer cannot be used, so a walk session cannot start."""


class StoreError(WalkAlarmError):
    """A key-value store read or write failed."""
