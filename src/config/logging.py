"""
structlog setup for the inventory engine.

Development gets coloured console output; other environments get one JSON
object per line. Coordinators bind ``kind``, ``operation`` and
``transaction_id`` around each unit of work so every event logged inside it
carries them.
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from decimal import Decimal
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from src.config.settings import get_settings


def add_engine_context(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    settings = get_settings()
    event_dict.setdefault("app", settings.app_name)
    event_dict.setdefault("environment", settings.environment)
    return event_dict


def stringify_decimals(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Render Decimal values as plain strings so prices and quantities log exactly."""
    for key, value in event_dict.items():
        if isinstance(value, Decimal):
            event_dict[key] = str(value)
    return event_dict


def _renderer(development: bool) -> list[Processor]:
    if development:
        return [structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())]
    return [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]


def configure_logging() -> None:
    """Install the structlog pipeline and route it through stdlib logging."""
    settings = get_settings()

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        add_engine_context,
        stringify_decimals,
        *_renderer(settings.is_development),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=settings.log_level)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


@contextmanager
def bind_operation_context(**values: Any) -> Iterator[None]:
    """Bind ``values`` as context variables for the duration of a ``with`` block."""
    with structlog.contextvars.bound_contextvars(**values):
        yield
