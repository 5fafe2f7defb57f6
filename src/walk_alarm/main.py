#!/usr/bin/env python3
"""
Walk Alarm command line

Manages the persisted alarm, replays recorded accelerometer sessions through
the step validator, and runs the polling monitor.
"""

import argparse
import asyncio
import signal
import sys
from collections import Counter
from typing import List, Optional

import orjson
import structlog
from pydantic import ValidationError

from walk_alarm.alarms import (
    AlarmMonitor,
    AlarmRepository,
    JsonFileKeyValueStore,
    SystemClock,
    format_alarm_time,
    get_time_until_alarm,
)
from walk_alarm.config import Settings, settings as default_settings
from walk_alarm.errors import SensorUnavailableError
from walk_alarm.logging import setup_logging
from walk_alarm.models import AlarmConfig, DAY_NAMES
from walk_alarm.motion import RecordedSensorSource, WalkSession

logger = structlog.get_logger(__name__)


def _print_json(payload) -> None:
    print(orjson.dumps(payload, option=orjson.OPT_INDENT_2).decode())


def _parse_days(value: str) -> List[int]:
    days = []
    for part in value.split(","):
        part = part.strip()
        if not part:
            continue
        if part.isdigit():
            days.append(int(part))
        elif part.capitalize()[:3] in DAY_NAMES:
            days.append(DAY_NAMES.index(part.capitalize()[:3]))
        else:
            raise argparse.ArgumentTypeError(f"Unknown day: {part}")
    return days


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="walk-alarm", description=__doc__.strip().splitlines()[0])
    parser.add_argument("--store", help="Path of the JSON store (default: settings.store_path)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    set_parser = subparsers.add_parser("set", help="Create or replace the alarm")
    set_parser.add_argument("--id", default=None, help="Alarm id (default: settings.alarm_id)")
    set_parser.add_argument("--hour", type=int, required=True)
    set_parser.add_argument("--minute", type=int, required=True)
    set_parser.add_argument("--days", type=_parse_days, default=[1, 2, 3, 4, 5],
                            help="Comma separated weekdays, 0=Sun or names (default: Mon-Fri)")
    set_parser.add_argument("--steps", type=int, default=10, help="Steps required to dismiss")
    set_parser.add_argument("--label", default="Wake Up")
    set_parser.add_argument("--disabled", action="store_true")

    show_parser = subparsers.add_parser("show", help="Print the alarm and the time until it fires")
    show_parser.add_argument("--id", default=None)

    reset_parser = subparsers.add_parser("reset", help="Clear the last triggered date")
    reset_parser.add_argument("--id", default=None)

    subparsers.add_parser("history", help="Print the wake-up log")

    replay_parser = subparsers.add_parser("replay", help="Run recorded samples through a walk session")
    replay_parser.add_argument("path", help="JSON-lines file of {x, y, z, timestamp_ms}")
    replay_parser.add_argument("--target", type=int, default=10, help="Step target")

    monitor_parser = subparsers.add_parser("monitor", help="Poll the alarm until interrupted")
    monitor_parser.add_argument("--id", default=None)
    monitor_parser.add_argument("--walk", default=None,
                                help="JSON-lines recording replayed as the dismissal walk on each ring")

    return parser


async def cmd_set(args, repository: AlarmRepository, settings: Settings) -> int:
    try:
        alarm = AlarmConfig(
            id=args.id or settings.alarm_id,
            hour=args.hour,
            minute=args.minute,
            enabled=not args.disabled,
            required_steps=args.steps,
            label=args.label,
            days=args.days,
        )
    except ValidationError as e:
        print(f"Invalid alarm: {e}", file=sys.stderr)
        return 2
    result = await repository.save_alarm(alarm)
    if not result.ok:
        print(f"Error: {result.error}", file=sys.stderr)
        return 1
    print(f"Alarm set for {format_alarm_time(alarm.hour, alarm.minute)}; "
          f"walk {alarm.required_steps} steps to dismiss it.")
    return 0


async def cmd_show(args, repository: AlarmRepository, settings: Settings) -> int:
    alarm_id = args.id or settings.alarm_id
    result = await repository.load_alarm(alarm_id)
    if not result.ok:
        print(f"Error: {result.error}", file=sys.stderr)
        return 1
    if result.value is None:
        print(f"No alarm stored under id {alarm_id!r}")
        return 1

    alarm = result.value
    remaining = get_time_until_alarm(alarm, SystemClock().now())
    _print_json({
        "alarm": alarm.model_dump(mode="json"),
        "time": format_alarm_time(alarm.hour, alarm.minute),
        "days": [DAY_NAMES[d] for d in alarm.days],
        "time_until": remaining.model_dump(mode="json") if remaining else None,
    })
    return 0


async def cmd_reset(args, repository: AlarmRepository, settings: Settings) -> int:
    result = await repository.reset_triggered_status(args.id or settings.alarm_id)
    if not result.ok:
        print(f"Error: {result.error}", file=sys.stderr)
        return 1
    print("Alarm re-armed" if result.value else "No alarm to reset")
    return 0


async def cmd_history(args, repository: AlarmRepository, settings: Settings) -> int:
    result = await repository.get_wake_up_history()
    if not result.ok:
        print(f"Error: {result.error}", file=sys.stderr)
        return 1
    _print_json([entry.model_dump(mode="json") for entry in result.value])
    return 0


def cmd_replay(args, settings: Settings) -> int:
    source = RecordedSensorSource.from_jsonl(args.path)
    rejections: Counter = Counter()

    def on_step(result, count):
        if not result.valid:
            rejections[result.reason.value] += 1

    session = WalkSession(source, args.target, settings=settings, on_step=on_step)
    try:
        with session:
            delivered = source.play()
    except SensorUnavailableError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    snapshot = session.snapshot()
    _print_json({
        "samples": delivered,
        "valid_steps": session.step_count,
        "target_steps": args.target,
        "target_reached": session.target_reached,
        "rejections": dict(rejections),
        "rhythm_variance": round(snapshot.rhythm_variance, 4),
        "average_interval_ms": round(snapshot.average_interval_ms, 1),
    })
    return 0 if session.target_reached else 2


def make_ring_handler(monitor: AlarmMonitor, settings: Settings, walk_path: Optional[str] = None):
    """Ring handler that runs the dismissal walk and ends the ring.

    The walk is replayed from ``walk_path`` when given. Without a recording the
    ring is dismissed with no steps and logged as a failed wake-up.
    """

    async def on_ring(alarm: AlarmConfig) -> None:
        print(f"RING {alarm.label} ({format_alarm_time(alarm.hour, alarm.minute)}): "
              f"walk {alarm.required_steps} steps to dismiss")

        steps_walked, reached = 0, False
        if walk_path:
            source = RecordedSensorSource.from_jsonl(walk_path)
            session = WalkSession(source, alarm.required_steps, settings=settings)
            try:
                with session:
                    source.play()
            except SensorUnavailableError as e:
                logger.error("Dismissal walk could not start", error=str(e))
            steps_walked, reached = session.step_count, session.target_reached

        await monitor.finish_ring(steps_walked, success=reached)
        print(f"Dismissed after {steps_walked} steps" if reached
              else f"Not dismissed: {steps_walked} of {alarm.required_steps} steps")

    return on_ring


async def cmd_monitor(args, repository: AlarmRepository, settings: Settings) -> int:
    stop_event = asyncio.Event()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop_event.set)

    monitor = AlarmMonitor(repository, settings=settings, alarm_id=args.id)
    monitor.on_ring = make_ring_handler(monitor, settings, args.walk)
    async with monitor:
        await stop_event.wait()
    logger.info("Received shutdown signal")
    return 0


async def _run_async(args, settings: Settings) -> int:
    store = JsonFileKeyValueStore(args.store or settings.store_path)
    repository = AlarmRepository(store, settings)
    handlers = {
        "set": cmd_set,
        "show": cmd_show,
        "reset": cmd_reset,
        "history": cmd_history,
        "monitor": cmd_monitor,
    }
    return await handlers[args.command](args, repository, settings)


def main(argv: Optional[List[str]] = None, settings: Optional[Settings] = None) -> int:
    """Main entry point."""
    settings = settings or default_settings
    args = build_parser().parse_args(argv)
    setup_logging(settings=settings)

    if args.command == "replay":
        return cmd_replay(args, settings)
    return asyncio.run(_run_async(args, settings))


if __name__ == "__main__":
    sys.exit(main())
