"""
Walk Alarm - motion-authenticated alarm dismissal
"""

__version__ = "0.1.0"

from walk_alarm.config import Settings
from walk_alarm.logging import setup_logging

__all__ = ["Settings", "setup_logging"]
