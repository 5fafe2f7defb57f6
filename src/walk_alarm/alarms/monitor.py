"""Periodic alarm polling with a reentrancy guard and durable once-per-day dedup."""

import asyncio
import inspect
from typing import Awaitable, Callable, Optional, Union

import structlog

from ..config import MarkTriggeredFailurePolicy, Settings, settings as default_settings
from ..models import AlarmConfig, StoreResult, TriggerDecision, WakeUpLogEntry
from .. import metrics
from .clock import Clock, SystemClock
from .repository import AlarmRepository
from .scheduler import calendar_date_string, mark_triggered, should_trigger

logger = structlog.get_logger(__name__)

RingHandler = Callable[[AlarmConfig], Union[Awaitable[None], None]]


class AlarmMonitor:
    """Polls one alarm record and raises a ring when it is due.

    A poll never starts while a previous poll is still running or while a ring
    is being presented. The triggered date is persisted before the ring
    handler is called, so a restart after the ring cannot ring again the same
    day.
    """

    def __init__(
        self,
        repository: AlarmRepository,
        clock: Optional[Clock] = None,
        on_ring: Optional[RingHandler] = None,
        settings: Optional[Settings] = None,
        alarm_id: Optional[str] = None,
    ):
        self.settings = settings or default_settings
        self.repository = repository
        self.clock = clock or SystemClock()
        self.on_ring = on_ring
        self.alarm_id = alarm_id or self.settings.alarm_id
        self.running = False
        self.ringing_alarm: Optional[AlarmConfig] = None
        self._lock = asyncio.Lock()
        self._task: Optional[asyncio.Task] = None
        # Trigger date kept in memory when the store refused it (assume_triggered policy)
        self._assumed_trigger_date: Optional[str] = None

    @property
    def ringing(self) -> bool:
        return self.ringing_alarm is not None

    async def start(self) -> None:
        """Start the polling task."""
        if self._task is not None and not self._task.done():
            return
        self.running = True
        self._task = asyncio.create_task(self._poll_loop())
        logger.info(
            "Alarm monitor started",
            alarm_id=self.alarm_id,
            poll_interval_seconds=self.settings.poll_interval_seconds,
        )

    async def stop(self) -> None:
        """Cancel the polling task and wait until it has finished."""
        self.running = False
        task, self._task = self._task, None
        if task is None:
            return

        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Alarm monitor stopped", alarm_id=self.alarm_id)

    async def __aenter__(self) -> "AlarmMonitor":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()

    async def _poll_loop(self) -> None:
        while self.running:
            try:
                await self.check_once()
            except Exception as e:
                logger.error("Error in alarm poll", error=str(e), exc_info=True)
            await asyncio.sleep(self.settings.poll_interval_seconds)

    async def check_once(self) -> Optional[TriggerDecision]:
        """Run one poll. Returns None when the poll was skipped or the alarm could not be read."""
        if self.ringing:
            metrics.polls_skipped.labels(reason="ringing").inc()
            logger.debug("Poll skipped, alarm is ringing", alarm_id=self.alarm_id)
            return None
        if self._lock.locked():
            metrics.polls_skipped.labels(reason="in_progress").inc()
            logger.debug("Poll skipped, previous check still running", alarm_id=self.alarm_id)
            return None

        async with self._lock:
            metrics.polls.inc()
            with metrics.poll_duration.time():
                decision = await self._evaluate()

        if decision is not None and decision.should_trigger and self.on_ring:
            try:
                outcome = self.on_ring(decision.alarm)
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception:
                self.ringing_alarm = None
                raise

        return decision

    async def _evaluate(self) -> Optional[TriggerDecision]:
        loaded = await self.repository.load_alarm(self.alarm_id)
        if not loaded.ok:
            logger.warning("Could not load alarm, will retry next poll", alarm_id=self.alarm_id, error=loaded.error)
            return None

        alarm = loaded.value
        if alarm is None:
            return TriggerDecision(should_trigger=False, alarm=None)

        now = self.clock.now()
        today = calendar_date_string(now)
        if self._assumed_trigger_date == today:
            alarm = mark_triggered(alarm, now)

        decision = should_trigger(alarm, now, self.settings)
        if not decision.should_trigger:
            return decision

        marked = await self.repository.mark_triggered(alarm, now)
        if marked.ok:
            alarm = marked.value
        elif self.settings.mark_triggered_failure_policy == MarkTriggeredFailurePolicy.RETRY_NEXT_POLL:
            logger.warning(
                "Could not persist trigger date, treating alarm as not triggered",
                alarm_id=alarm.id,
                error=marked.error,
            )
            return TriggerDecision(should_trigger=False, alarm=alarm)
        else:
            logger.warning(
                "Could not persist trigger date, assuming triggered for this process",
                alarm_id=alarm.id,
                error=marked.error,
            )
            self._assumed_trigger_date = today
            alarm = mark_triggered(alarm, now)

        self.ringing_alarm = alarm
        metrics.alarms_triggered.inc()
        logger.info(
            "Alarm ringing",
            alarm_id=alarm.id,
            label=alarm.label,
            required_steps=alarm.required_steps,
        )
        return TriggerDecision(should_trigger=True, alarm=alarm)

    async def finish_ring(self, steps_walked: int, success: bool = True) -> StoreResult[WakeUpLogEntry]:
        """End the current ring and record the wake-up."""
        if not self.ringing:
            raise RuntimeError("No alarm is ringing")

        alarm, self.ringing_alarm = self.ringing_alarm, None
        logger.info("Alarm dismissed", alarm_id=alarm.id, steps_walked=steps_walked, success=success)
        return await self.repository.log_wake_up(steps_walked, success=success, at=self.clock.now())
