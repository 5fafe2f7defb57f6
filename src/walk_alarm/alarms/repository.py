"""Alarm and wake-up log persistence with explicit success/failure results."""

from datetime import datetime
from typing import Awaitable, Callable, List, Optional, TypeVar

import orjson
import structlog

from ..config import Settings, settings as default_settings
from ..models import AlarmConfig, StoreResult, WakeUpLogEntry
from .. import metrics
from .scheduler import mark_triggered as stamp_triggered
from .store import KeyValueStore

logger = structlog.get_logger(__name__)

T = TypeVar("T")

ALARM_KEY_PREFIX = "alarm:"
WAKE_UP_LOG_KEY = "wake_up_logs"


def alarm_key(alarm_id: str) -> str:
    return f"{ALARM_KEY_PREFIX}{alarm_id}"


class AlarmRepository:
    """Reads and writes alarm records through a key-value store.

    Store failures and corrupt records never raise out of this class. Every
    operation returns a ``StoreResult`` and the caller decides what a failure
    means for it.
    """

    def __init__(self, store: KeyValueStore, settings: Optional[Settings] = None):
        self.store = store
        self.settings = settings or default_settings

    async def _run(self, operation: str, func: Callable[[], Awaitable[T]]) -> StoreResult[T]:
        try:
            return StoreResult.success(await func())
        except Exception as e:
            metrics.store_errors.labels(operation=operation).inc()
            logger.error("Store operation failed", operation=operation, error=str(e))
            return StoreResult.failure(f"{operation} failed: {e}")

    async def _read_alarm(self, alarm_id: str) -> Optional[AlarmConfig]:
        raw = await self.store.get(alarm_key(alarm_id))
        if raw is None:
            return None
        return AlarmConfig.model_validate(orjson.loads(raw))

    async def _write_alarm(self, alarm: AlarmConfig) -> AlarmConfig:
        await self.store.set(alarm_key(alarm.id), orjson.dumps(alarm.model_dump(mode="json")).decode())
        return alarm

    async def load_alarm(self, alarm_id: str) -> StoreResult[Optional[AlarmConfig]]:
        """Load an alarm. A missing record is a success with no value."""
        return await self._run("load_alarm", lambda: self._read_alarm(alarm_id))

    async def save_alarm(self, alarm: AlarmConfig) -> StoreResult[AlarmConfig]:
        result = await self._run("save_alarm", lambda: self._write_alarm(alarm))
        if result.ok:
            logger.info(
                "Alarm saved",
                alarm_id=alarm.id,
                hour=alarm.hour,
                minute=alarm.minute,
                enabled=alarm.enabled,
                days=alarm.days,
            )
        return result

    async def mark_triggered(self, alarm: AlarmConfig, today: datetime) -> StoreResult[AlarmConfig]:
        """Persist ``today`` as the alarm's last trigger date.

        The stored record is re-read first so edits made since the poll loaded
        its snapshot are kept.
        """

        async def _mark() -> AlarmConfig:
            current = await self._read_alarm(alarm.id) or alarm
            return await self._write_alarm(stamp_triggered(current, today))

        result = await self._run("mark_triggered", _mark)
        if result.ok:
            logger.info(
                "Alarm marked as triggered",
                alarm_id=alarm.id,
                date=result.value.last_triggered_date,
            )
        return result

    async def reset_triggered_status(self, alarm_id: str) -> StoreResult[Optional[AlarmConfig]]:
        """Clear the last trigger date so the alarm can fire again today."""

        async def _reset() -> Optional[AlarmConfig]:
            current = await self._read_alarm(alarm_id)
            if current is None:
                return None
            return await self._write_alarm(current.model_copy(update={"last_triggered_date": None}))

        result = await self._run("reset_triggered_status", _reset)
        if result.ok and result.value is not None:
            logger.info("Alarm triggered status reset", alarm_id=alarm_id)
        return result

    async def _read_history(self) -> List[WakeUpLogEntry]:
        raw = await self.store.get(WAKE_UP_LOG_KEY)
        if raw is None:
            return []
        return [WakeUpLogEntry.model_validate(entry) for entry in orjson.loads(raw)]

    async def log_wake_up(
        self,
        steps_walked: int,
        success: bool = True,
        at: Optional[datetime] = None,
    ) -> StoreResult[WakeUpLogEntry]:
        """Append a wake-up to the log, keeping only the most recent entries."""
        entry = WakeUpLogEntry(date=at or datetime.now(), steps_walked=steps_walked, success=success)

        async def _append() -> WakeUpLogEntry:
            history = await self._read_history()
            history.append(entry)
            history = history[-self.settings.wake_log_capacity:]
            payload = [e.model_dump(mode="json") for e in history]
            await self.store.set(WAKE_UP_LOG_KEY, orjson.dumps(payload).decode())
            return entry

        result = await self._run("log_wake_up", _append)
        if result.ok:
            logger.info("Wake-up logged", steps_walked=steps_walked, success=success)
        return result

    async def get_wake_up_history(self) -> StoreResult[List[WakeUpLogEntry]]:
        return await self._run("get_wake_up_history", self._read_history)
