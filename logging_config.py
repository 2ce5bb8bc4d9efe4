from __future__ import annotations

import logging
import time
from datetime import datetime
from logging.config import dictConfig
from typing import Any, Iterable, Sequence

from settings import get_settings

_DEFAULT_EXTRA_KEYS = (
    "device_id",
    "device_type",
    "previous_type",
    "sample_count",
    "evicted_count",
    "source",
    "row_number",
    "reason",
    "recorded_count",
    "error_count",
    "invalid_value",
)

_configured = False


def _render_value(value: Any) -> str:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, str) and (not value or " " in value):
        return repr(value)
    return str(value)


class ContextualFormatter(logging.Formatter):
    """Formatter that appends ``key=value`` pairs for known ``extra`` fields."""

    # Timestamps carry a ``Z`` suffix, so render them in UTC.
    converter = time.gmtime

    def __init__(
        self,
        fmt: str | None = None,
        datefmt: str | None = None,
        style: str = "%",
        extra_keys: Iterable[str] | None = None,
    ) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt, style=style)
        self._extra_keys: Sequence[str] = tuple(extra_keys or _DEFAULT_EXTRA_KEYS)

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        context_parts = [
            f"{key}={_render_value(getattr(record, key))}"
            for key in self._extra_keys
            if getattr(record, key, None) is not None
        ]
        if context_parts:
            return f"{message} | {' '.join(context_parts)}"
        return message


def configure_logging(level: str | int | None = None, force: bool = False) -> None:
    """Configure application-wide logging with contextual formatting.

    Repeated calls are no-ops unless ``force`` is set, so that both the app
    factory and the CLI may call this freely.
    """
    global _configured
    if _configured and not force:
        return

    settings = get_settings()
    log_level = level if level is not None else settings.log_level

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "contextual": {
                    "()": "logging_config.ContextualFormatter",
                    "fmt": "%(asctime)sZ | %(levelname)s | %(name)s | %(message)s",
                    "datefmt": "%Y-%m-%dT%H:%M:%S",
                    "style": "%",
                    "extra_keys": list(_DEFAULT_EXTRA_KEYS),
                }
            },
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "level": log_level,
                    "formatter": "contextual",
                }
            },
            "loggers": {
                "datastore": {"level": log_level},
                "services": {"level": log_level},
            },
            "root": {"handlers": ["default"], "level": log_level},
        }
    )

    _configured = True
