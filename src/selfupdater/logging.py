"""Logging configuration for selfupdater.

Log lines go to stderr so they never interleave with the consent prompt on
stdout.
"""

import logging
import sys
from typing import TextIO

import structlog

from selfupdater.config import get_settings


def setup_logging(level: str | None = None, stream: TextIO | None = None) -> None:
    """Configure structured logging.

    Args:
        level: Level name overriding ``Settings.log_level``.
        stream: Destination for log lines, stderr by default.
    """
    settings = get_settings()
    stream = stream or sys.stderr

    # Set log level
    log_level = getattr(logging, (level or settings.log_level).upper(), logging.INFO)

    # Configure structlog
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            (
                structlog.dev.ConsoleRenderer(colors=stream.isatty())
                if settings.is_development
                else structlog.processors.JSONRenderer()
            ),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream),
        cache_logger_on_first_use=True,
    )

    # httpx logs every request at INFO through the standard library
    logging.basicConfig(format="%(message)s", stream=stream, level=log_level)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def bind_run_context(binary_name: str, current_version: str) -> None:
    """Attach the tool identity to every event logged during this run."""
    structlog.contextvars.bind_contextvars(binary=binary_name, current_version=current_version)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a logger instance."""
    return structlog.get_logger(name)
