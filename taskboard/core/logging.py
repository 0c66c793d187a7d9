"""Logging configuration with text and JSON formatters."""

from __future__ import annotations

import json
import logging
import sys
import time
from datetime import UTC, datetime
from typing import Any

from taskboard.core.config import settings

ROOT_LOGGER_NAME = "taskboard"

# Attributes present on every LogRecord; anything else came in through `extra=`.
_RESERVED_RECORD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys() | {"message", "asctime"},
)


def _extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _RESERVED_RECORD_ATTRS and not key.startswith("_")
    }


class TextFormatter(logging.Formatter):
    """Human-readable formatter that appends `extra=` fields as key=value pairs."""

    def __init__(self, *, use_utc: bool = False) -> None:
        super().__init__(
            fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
        )
        if use_utc:
            self.converter = time.gmtime

    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        extras = _extra_fields(record)
        if not extras:
            return base
        rendered = " ".join(f"{key}={value}" for key, value in sorted(extras.items()))
        return f"{base} {rendered}"


class JsonFormatter(logging.Formatter):
    """One JSON object per line, including `extra=` fields."""

    def __init__(self, *, use_utc: bool = False) -> None:
        super().__init__()
        self.use_utc = use_utc

    def format(self, record: logging.LogRecord) -> str:
        if self.use_utc:
            timestamp = datetime.fromtimestamp(record.created, tz=UTC).isoformat()
        else:
            timestamp = datetime.fromtimestamp(record.created).astimezone().isoformat()
        payload: dict[str, Any] = {
            "timestamp": timestamp,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(_extra_fields(record))
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str, sort_keys=True)


def build_formatter(log_format: str, *, use_utc: bool = False) -> logging.Formatter:
    """Return the formatter matching the configured log format."""
    if log_format == "json":
        return JsonFormatter(use_utc=use_utc)
    return TextFormatter(use_utc=use_utc)


def configure_logging(
    *,
    level: str | None = None,
    log_format: str | None = None,
    use_utc: bool | None = None,
) -> logging.Logger:
    """Install a single stream handler on the package logger."""
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel((level or settings.log_level).upper())
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        build_formatter(
            log_format or settings.log_format,
            use_utc=settings.log_use_utc if use_utc is None else use_utc,
        ),
    )
    for existing in list(logger.handlers):
        logger.removeHandler(existing)
    logger.addHandler(handler)
    logger.propagate = False
    return logger


def get_logger(name: str) -> logging.Logger:
    """Return a logger namespaced under the package root."""
    if name == ROOT_LOGGER_NAME or name.startswith(f"{ROOT_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
