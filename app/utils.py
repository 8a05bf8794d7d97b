"""
Shared helpers.

Logging is configured once, on first use, from ``config.LOG_LEVEL``.
"""
import logging
import logging.config
from datetime import datetime, timezone
from typing import Optional

from app.core import config


LOGGING_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "default": {"format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s"},
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "default",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": config.LOG_LEVEL,
    },
}

_configured = False


def get_logger(name: str) -> logging.Logger:
    """
    Get a module logger.

    Usage:
        log = get_logger(__name__)
        log.info("Something happened")
    """
    global _configured
    if not _configured:
        logging.config.dictConfig(LOGGING_CONFIG)
        _configured = True
    return logging.getLogger(name)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes (as SQLite returns them) as UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def dates_in_order(start: Optional[datetime], end: Optional[datetime]) -> bool:
    """False only when both dates are set and ``end`` is before ``start``."""
    if start is None or end is None:
        return True
    return as_utc(end) >= as_utc(start)
