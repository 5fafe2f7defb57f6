"""
Configuration for the walk alarm engine
"""

from walk_alarm.config.settings import MarkTriggeredFailurePolicy, Settings, settings

__all__ = ["MarkTriggeredFailurePolicy", "Settings", "settings"]
