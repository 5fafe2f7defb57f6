"""Rolling acceleration magnitude window with adaptive baseline and threshold."""

from collections import deque
from typing import Optional

import numpy as np

from ..config import Settings, settings as default_settings
from ..models import AccelerationSample


def sample_magnitude(sample: AccelerationSample) -> float:
    """Euclidean norm of the sample's three axes."""
    return float(np.linalg.norm([sample.x, sample.y, sample.z]))


class RollingMagnitudeTracker:
    """Keeps the last N magnitudes and derives a moving baseline from them."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or default_settings
        self.window = deque(maxlen=self.settings.magnitude_window_size)
        self._baseline = self.settings.default_baseline

    def push(self, magnitude: float) -> None:
        """Add a magnitude, evicting the oldest once the window is full."""
        self.window.append(magnitude)
        # Keep the neutral default until there is enough data to average
        if len(self.window) >= self.settings.baseline_min_samples:
            self._baseline = float(np.mean(self.window))

    def baseline(self) -> float:
        return self._baseline

    def threshold(self) -> float:
        return self._baseline * self.settings.threshold_multiplier

    def reset(self) -> None:
        self.window.clear()
        self._baseline = self.settings.default_baseline

    def __len__(self) -> int:
        return len(self.window)
