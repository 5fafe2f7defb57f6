"""
Step detection, anti-cheat validation and progress tracking
"""

from walk_alarm.motion.magnitude import RollingMagnitudeTracker, sample_magnitude
from walk_alarm.motion.progress import ProgressTracker
from walk_alarm.motion.sensors import RecordedSensorSource, SensorSource
from walk_alarm.motion.session import SessionSnapshot, WalkSession
from walk_alarm.motion.step_detector import StepDetector
from walk_alarm.motion.validator import AntiCheatValidator

__all__ = [
    "AntiCheatValidator",
    "ProgressTracker",
    "RecordedSensorSource",
    "RollingMagnitudeTracker",
    "SensorSource",
    "SessionSnapshot",
    "StepDetector",
    "WalkSession",
    "sample_magnitude",
]
