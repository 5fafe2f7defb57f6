"""Global test configuration and fixtures."""

import math
from datetime import datetime
from typing import List, Optional, Sequence

import pytest

from walk_alarm.alarms import AlarmRepository, InMemoryKeyValueStore
from walk_alarm.config import Settings
from walk_alarm.errors import StoreError
from walk_alarm.models import AccelerationSample, AlarmConfig

# 2024-01-01 was a Monday
MONDAY = datetime(2024, 1, 1)

# Natural walking cadence: ~500 ms per step with uneven intervals, on the 40 ms sample grid
WALK_INTERVALS_MS = [480, 560, 440, 520, 480, 560, 440, 520, 480]
FIRST_PEAK_MS = 400


def peak_times(intervals: Sequence[float], first_peak: float = FIRST_PEAK_MS) -> List[float]:
    times = [first_peak]
    for interval in intervals:
        times.append(times[-1] + interval)
    return times


def make_samples(
    peaks: Sequence[float],
    sway: float = 0.4,
    surge: float = 0.3,
    tilt: float = 0.0,
    high: float = 1.3,
    low: float = 0.8,
    half_width_ms: float = 100,
    interval_ms: float = 40,
) -> List[AccelerationSample]:
    """Accelerometer samples with a magnitude pulse around every peak time.

    ``sway`` is the side-to-side (x) amplitude and ``surge`` the forward (z)
    amplitude, both over a 1 s stride. With both at zero the device only
    bounces vertically. ``tilt`` adds a constant x offset.
    """
    samples = []
    end = peaks[-1] + 600 if peaks else 2000
    t = 0.0
    while t <= end:
        near_peak = any(abs(t - p) <= half_width_ms for p in peaks)
        magnitude = high if near_peak else low
        x = tilt + sway * math.sin(2 * math.pi * t / 1000.0)
        z = surge * math.cos(2 * math.pi * t / 1000.0)
        y = math.sqrt(magnitude ** 2 - x ** 2 - z ** 2)
        samples.append(AccelerationSample(x=x, y=y, z=z, timestamp_ms=t))
        t += interval_ms
    return samples


class FixedClock:
    """Wall clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.current = now

    def now(self) -> datetime:
        return self.current

    def set(self, now: datetime) -> None:
        self.current = now


class FailingKeyValueStore(InMemoryKeyValueStore):
    """In-memory store whose reads or writes can be switched to fail."""

    def __init__(self, fail_get: bool = False, fail_set: bool = False):
        super().__init__()
        self.fail_get = fail_get
        self.fail_set = fail_set
        self.set_calls = 0

    async def get(self, key: str) -> Optional[str]:
        if self.fail_get:
            raise StoreError("disk unavailable")
        return await super().get(key)

    async def set(self, key: str, value: str) -> None:
        self.set_calls += 1
        if self.fail_set:
            raise StoreError("disk full")
        await super().set(key, value)


@pytest.fixture()
def settings():
    return Settings()


@pytest.fixture()
def sample_factory():
    """Build samples from step intervals: ``sample_factory(intervals, **make_samples_kwargs)``."""

    def _factory(intervals: Sequence[float] = WALK_INTERVALS_MS, **kwargs) -> List[AccelerationSample]:
        return make_samples(peak_times(intervals), **kwargs)

    return _factory


@pytest.fixture()
def walk_samples(sample_factory):
    return sample_factory()


@pytest.fixture()
def monday():
    return MONDAY


@pytest.fixture()
def weekday_alarm():
    return AlarmConfig(id="main", hour=6, minute=30, days=[1, 2, 3, 4, 5], required_steps=10)


@pytest.fixture()
def store():
    return InMemoryKeyValueStore()


@pytest.fixture()
def failing_store():
    return FailingKeyValueStore()


@pytest.fixture()
def repository(store, settings):
    return AlarmRepository(store, settings)


@pytest.fixture()
def clock():
    return FixedClock(MONDAY.replace(hour=6, minute=31))
