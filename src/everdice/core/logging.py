"""Structured logging for Everdice.

Everything logs through structlog with key/value pairs. The API binds the
request method and path into context variables, so every entry written while
a request is handled carries them.

Example:
    >>> from everdice.core.logging import get_logger
    >>> logger = get_logger(__name__)
    >>> logger.info("Encounter resolved", campaign_id=3, outcome="victory")
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog
from structlog.types import Processor

from everdice import __version__


if TYPE_CHECKING:
    from structlog.types import EventDict, WrappedLogger


STDLIB_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# Third-party loggers kept at WARNING regardless of the app level
QUIET_LOGGERS: tuple[str, ...] = ("httpx", "httpcore", "openai", "uvicorn.access")


def add_app_context(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Stamp each entry with the service name and version."""
    event_dict.setdefault("service", "everdice")
    event_dict.setdefault("version", __version__)
    return event_dict


def _build_processors(json_format: bool) -> list[Processor]:
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        add_app_context,
        structlog.processors.StackInfoRenderer(),
    ]
    if json_format:
        processors += [
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))
    return processors


def configure_logging(
    *,
    level: str = "INFO",
    json_format: bool = False,
    log_file: str | Path | None = None,
) -> None:
    """Configure structlog and the standard library root logger.

    Args:
        level: Level name such as "DEBUG" or "WARNING".
        json_format: Render JSON lines instead of console output.
        log_file: Also append standard library log lines to this file.
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    structlog.configure(
        processors=_build_processors(json_format),
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(format=STDLIB_FORMAT, level=numeric_level, handlers=handlers, force=True)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    """Logger for a module, usually called with ``__name__``."""
    return structlog.get_logger(name)


def bind_context(**values: Any) -> None:
    """Attach key/value pairs to every entry logged in the current context.

    Example:
        >>> bind_context(method="POST", path="/api/campaigns/3/sessions")
    """
    structlog.contextvars.bind_contextvars(**values)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


__all__ = [
    "QUIET_LOGGERS",
    "add_app_context",
    "configure_logging",
    "get_logger",
    "bind_context",
    "clear_context",
]
