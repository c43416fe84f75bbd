"""
Structured logging configuration using structlog.
Library code never prints; every event is a snake_case name plus context.
"""

import logging
import sys

import structlog

from tripbuddy.config import settings

# Chatty third-party loggers; httpx logs every request at INFO.
QUIET_LOGGERS = ("httpx", "httpcore", "urllib3")


def configure_logging(level: str | None = None) -> None:
    """
    Configure structlog for the cache tooling.

    Events go to stderr so command output on stdout stays clean. ``level``
    overrides ``settings.log_level``; third-party loggers stay at WARNING
    unless the level is DEBUG.
    """
    level_name = (level or settings.log_level).upper()
    if settings.log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level_name),
        force=True,
    )
    third_party_level = logging.DEBUG if level_name == "DEBUG" else logging.WARNING
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(third_party_level)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Logger for a module; pass ``__name__``."""
    return structlog.get_logger(name)
