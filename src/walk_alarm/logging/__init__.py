"""
Structured logging setup for the walk alarm engine
"""

from walk_alarm.logging.setup import setup_logging

__all__ = ["setup_logging"]
