"""
Structured logging configuration
"""

import logging
import sys
from typing import Optional

import structlog
from structlog.types import EventDict, Processor

from walk_alarm.config import Settings


def setup_logging(settings: Optional[Settings] = None) -> None:
    """
    Configure structlog over the standard library

    Args:
        settings: Optional settings object (will create default if not provided).
            ``debug`` forces DEBUG level regardless of ``log_level``.
    """
    if settings is None:
        settings = Settings()

    level = logging.DEBUG if settings.debug else getattr(logging, settings.log_level.upper())

    # stdout is reserved for command output
    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=level)
    logging.getLogger().setLevel(level)

    def add_service_name(logger, method_name, event_dict: EventDict) -> EventDict:
        event_dict["service"] = settings.service_name
        event_dict["environment"] = settings.environment
        return event_dict

    processors: list[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
        add_service_name,
    ]

    if settings.log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
