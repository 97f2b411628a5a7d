"""Logging configuration for the Ordering domain."""

import logging

import structlog

from ordering.domain import settings

logger = structlog.get_logger(__name__)


def configure_logging(level: int = logging.INFO, log_format: str | None = None) -> None:
    """Configure structlog for the process.

    ``log_format`` is ``console`` (key=value lines) or ``json``; it defaults
    to the EXCHANGE_LOG_FORMAT setting.
    """
    log_format = log_format or settings.log_format
    renderer = structlog.processors.JSONRenderer() if log_format == "json" else structlog.dev.ConsoleRenderer()

    logging.basicConfig(format="%(message)s", level=level)
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=False,
    )

    # Suppress noisy library loggers
    logging.getLogger("urllib3").setLevel(logging.WARNING)
