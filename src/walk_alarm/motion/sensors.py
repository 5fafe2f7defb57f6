"""Accelerometer source interface and a replaying implementation."""

from pathlib import Path
from typing import Callable, Dict, Iterable, List, Protocol, Union

import orjson
import structlog

from ..models import AccelerationSample

logger = structlog.get_logger(__name__)

SampleCallback = Callable[[AccelerationSample], None]


class SensorSource(Protocol):
    """Push-model accelerometer. Samples are stamped with a monotonic ms clock."""

    def is_available(self) -> bool:
        ...

    def set_sample_interval(self, interval_ms: int) -> None:
        ...

    def subscribe(self, callback: SampleCallback) -> int:
        ...

    def unsubscribe(self, handle: int) -> None:
        ...


class RecordedSensorSource:
    """Replays a fixed list of samples to its subscribers."""

    def __init__(self, samples: Iterable[AccelerationSample], available: bool = True):
        self.samples: List[AccelerationSample] = list(samples)
        self.available = available
        self.interval_ms = None
        self._subscribers: Dict[int, SampleCallback] = {}
        self._next_handle = 1

    @classmethod
    def from_jsonl(cls, path: Union[str, Path]) -> "RecordedSensorSource":
        """Load samples from a JSON-lines file of {x, y, z, timestamp_ms} objects."""
        samples = []
        with open(path, "rb") as f:
            for line in f:
                line = line.strip()
                if line:
                    samples.append(AccelerationSample(**orjson.loads(line)))
        logger.info("Loaded recorded samples", path=str(path), count=len(samples))
        return cls(samples)

    def is_available(self) -> bool:
        return self.available

    def set_sample_interval(self, interval_ms: int) -> None:
        self.interval_ms = interval_ms

    def subscribe(self, callback: SampleCallback) -> int:
        handle = self._next_handle
        self._next_handle += 1
        self._subscribers[handle] = callback
        return handle

    def unsubscribe(self, handle: int) -> None:
        self._subscribers.pop(handle, None)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def play(self) -> int:
        """Push every sample to the current subscribers. Returns samples delivered."""
        delivered = 0
        for sample in self.samples:
            if not self._subscribers:
                break
            for callback in list(self._subscribers.values()):
                callback(sample)
            delivered += 1
        return delivered
