"""Structured logging configuration using structlog."""

import logging
import sys
from datetime import tzinfo
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from rainwake.core.clock import from_millis
from rainwake.core.config import get_settings

# Event keys carrying epoch-millis instants (durations such as age_ms are excluded)
INSTANT_KEYS = frozenset(
    {"now_ms", "target_ms", "when_ms", "target_time_ms", "trigger_time_ms"}
)


class LocalTimeRenderer:
    """Add a local wall-clock twin for every epoch-millis instant in an event.

    An event with ``trigger_time_ms`` also gets ``trigger_time`` formatted as
    ``YYYY-MM-DD HH:MM`` in the reference timezone.
    """

    def __init__(self, tz: tzinfo):
        self._tz = tz

    def __call__(self, logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
        for key in INSTANT_KEYS.intersection(event_dict):
            value = event_dict[key]
            if isinstance(value, int) and not isinstance(value, bool):
                local = from_millis(value).astimezone(self._tz)
                event_dict[key[:-3]] = local.strftime("%Y-%m-%d %H:%M")
        return event_dict


def add_app_name(app_name: str) -> Processor:
    """Processor stamping every event with the application name."""

    def processor(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("app", app_name)
        return event_dict

    return processor


def setup_logging() -> None:
    """Configure structured logging for the application."""
    settings = get_settings()

    # Shared processors for all loggers; receiver and job runs bind
    # trace_id plus their own name through structlog.contextvars
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        add_app_name(settings.app_name),
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        LocalTimeRenderer(settings.tz),
        structlog.processors.StackInfoRenderer(),
    ]

    if settings.debug:
        # Development: pretty console output
        processors: list[Processor] = [
            *shared_processors,
            structlog.dev.ConsoleRenderer(colors=True),
        ]
    else:
        # Production: JSON output
        processors = [
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, settings.log_level)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )

    # httpx and uvicorn log through the standard library
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.log_level),
    )


def get_logger(name: str | None = None, **initial_values: Any) -> structlog.stdlib.BoundLogger:
    """Get a logger instance with optional initial context values.

    Args:
        name: Logger name (optional)
        **initial_values: Initial context values to bind

    Returns:
        Bound logger instance
    """
    logger = structlog.get_logger(name)
    if initial_values:
        logger = logger.bind(**initial_values)
    return logger
