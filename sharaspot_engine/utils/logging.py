"""Structlog setup for engine components and per-event request context.

Components log through ``structlog.get_logger().bind(component=...)`` with
snake_case event names. A contribution event binds the acting user and a
correlation id once; every component logging inside that event inherits them
through contextvars, including across awaits in the same task.
"""

import logging
import sys
import uuid
from contextlib import contextmanager
from typing import Iterator, Optional

import structlog
from structlog.contextvars import bind_contextvars, merge_contextvars, unbind_contextvars
from structlog.processors import JSONRenderer

from sharaspot_engine.config.settings import settings


def configure_structured_logging(
    level: Optional[str] = None,
    log_format: Optional[str] = None,
) -> None:
    """
    Configure structlog processors and renderer.

    Uses:
    - Console renderer in an interactive terminal with console format
    - JSON renderer otherwise
    - merge_contextvars so request context reaches every event

    Args:
        level: Overrides settings.log_level
        log_format: Overrides settings.log_format
    """
    level = (level or settings.log_level).upper()
    log_format = (log_format or settings.log_format).lower()

    processors = [
        merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if sys.stderr.isatty() and log_format == "console":
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=True,
                exception_formatter=structlog.dev.plain_traceback,
            )
        )
    else:
        processors.append(JSONRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, level, logging.INFO)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


def get_correlation_id() -> str:
    return str(uuid.uuid4())


@contextmanager
def request_context(user_id: str, correlation_id: Optional[str] = None) -> Iterator[str]:
    """
    Bind the acting user and a correlation id for the duration of one event.

    Yields:
        The correlation id in effect

    Example:
        >>> with request_context("u-1") as correlation_id:
        ...     structlog.get_logger().info("vote_recorded")  # carries user_id
    """
    correlation_id = correlation_id or get_correlation_id()
    bind_contextvars(user_id=user_id, correlation_id=correlation_id)
    try:
        yield correlation_id
    finally:
        unbind_contextvars("user_id", "correlation_id")


configure_structured_logging()


__all__ = [
    "configure_structured_logging",
    "get_correlation_id",
    "request_context",
]
