"""Loguru configuration for stores and the operator CLI."""

import sys
from typing import Optional

from loguru import logger

from sharaspot_engine.config.settings import settings


def configure_logging(level: Optional[str] = None, log_format: Optional[str] = None) -> None:
    """
    Configure loguru from settings, with optional overrides.

    Behavior:
    - Interactive terminal with console format: colorized, one line per record
    - Anything else: JSON records on stderr, so CLI stdout carries only tables
    - Records without a bound component are tagged "engine"

    Args:
        level: Overrides settings.log_level (the CLI's --log-level)
        log_format: Overrides settings.log_format ("json" or "console")
    """
    level = (level or settings.log_level).upper()
    log_format = (log_format or settings.log_format).lower()

    logger.remove()
    logger.configure(extra={"component": "engine"})

    if sys.stderr.isatty() and log_format == "console":
        logger.add(
            sys.stderr,
            format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{extra[component]}</cyan> | <level>{message}</level>",
            level=level,
            colorize=True,
        )
    else:
        logger.add(
            sys.stderr,
            format="{message}",
            level=level,
            serialize=True,
            diagnose=False,
        )


def get_logger(component: str):
    """
    Logger bound to a component name.

    Example:
        >>> log = get_logger("cli")
        >>> log.info("Monthly reset complete: 12 users")
    """
    return logger.bind(component=component)


configure_logging()

__all__ = ["logger", "get_logger", "configure_logging"]
