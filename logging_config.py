from __future__ import annotations

import logging
from logging.config import dictConfig
from typing import Any

from settings import get_settings

LOG_FORMAT = "%(asctime)sZ | %(levelname)s | %(name)s | %(message)s"
LOG_DATEFMT = "%Y-%m-%dT%H:%M:%S"

_configured = False


class ContextualFormatter(logging.Formatter):
    """Appends the reading/subscriber context passed via ``extra=`` to each line."""

    context_keys = (
        "reading_id",
        "value",
        "limit",
        "event",
        "subscriber_id",
        "subscriber_count",
        "database",
        "reason",
    )

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        context = " ".join(
            f"{key}={getattr(record, key)}"
            for key in self.context_keys
            if getattr(record, key, None) is not None
        )
        return f"{message} | {context}" if context else message


def build_logging_config(level: str | int) -> dict[str, Any]:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "contextual": {
                "()": ContextualFormatter,
                "fmt": LOG_FORMAT,
                "datefmt": LOG_DATEFMT,
            }
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "contextual",
            }
        },
        "root": {"handlers": ["console"], "level": level},
        # Statement echo stays off unless asked for explicitly.
        "loggers": {"sqlalchemy.engine": {"level": "WARNING"}},
    }


def configure_logging(level: str | int | None = None) -> None:
    """Install the console handler once per process; later calls are no-ops."""
    global _configured
    if _configured:
        return
    dictConfig(build_logging_config(level if level is not None else get_settings().log_level))
    _configured = True
