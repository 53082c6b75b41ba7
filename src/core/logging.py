"""Structured logging setup."""

import logging
import sys

import structlog

from core.config import settings


def setup_logging() -> None:
    """Configure structlog on top of the stdlib logging module.

    JSON lines in production (or when ``LOG_JSON`` is set), colored
    console output otherwise. Request-scoped values bound through
    ``structlog.contextvars`` are merged into every event.
    """
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    render_json = settings.log_json if settings.log_json is not None else settings.is_production

    renderer: structlog.types.Processor
    if render_json:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )
