"""Key-value stores used to persist alarm records and the wake-up log."""

import asyncio
import os
from pathlib import Path
from typing import Dict, Optional, Protocol, Union

import orjson
import structlog

from ..errors import StoreError

logger = structlog.get_logger(__name__)


class KeyValueStore(Protocol):
    """Async string key-value store. Both operations raise on failure."""

    async def get(self, key: str) -> Optional[str]:
        ...

    async def set(self, key: str, value: str) -> None:
        ...


class InMemoryKeyValueStore:
    """Dictionary-backed store, lost when the process exits."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    async def set(self, key: str, value: str) -> None:
        self.data[key] = value


class JsonFileKeyValueStore:
    """Stores every key in one JSON document on disk.

    Writes go to a temporary file that is then renamed over the document, so
    readers never see a partial write.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> Optional[str]:
        data = await asyncio.to_thread(self._read)
        return data.get(key)

    async def set(self, key: str, value: str) -> None:
        async with self._lock:
            await asyncio.to_thread(self._write_key, key, value)

    def _read(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = orjson.loads(self.path.read_bytes())
        except (OSError, orjson.JSONDecodeError) as e:
            raise StoreError(f"Failed to read {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise StoreError(f"Store document {self.path} is not a JSON object")
        return data

    def _write_key(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_bytes(orjson.dumps(data, option=orjson.OPT_INDENT_2))
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise StoreError(f"Failed to write {self.path}: {e}") from e
        logger.debug("Store key written", key=key, path=str(self.path))
