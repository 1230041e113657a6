"""Logging configuration with correlation ids and secret redaction."""

from __future__ import annotations

from datetime import datetime
import json
import logging
import os
import sys
from typing import Any
import uuid
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .utils.logging import redact_items

DEFAULT_TIMEZONE = "UTC"

_CORRELATION_ID = os.getenv("RD_CORR_ID") or uuid.uuid4().hex
_RESERVED_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "correlation_id"}


def _json_enabled() -> bool:
    return os.getenv("RD_LOG_JSON", "").strip().lower() in {"1", "true", "yes", "on"}


def _zone() -> ZoneInfo:
    name = os.getenv("RD_LOG_TZ") or DEFAULT_TIMEZONE
    try:
        return ZoneInfo(name)
    except ZoneInfoNotFoundError:
        return ZoneInfo(DEFAULT_TIMEZONE)


def get_correlation_id() -> str:
    """Return the identifier attached to every record of this process."""

    return _CORRELATION_ID


def _extras(record: logging.LogRecord) -> dict[str, Any]:
    extras = {
        key: value
        for key, value in vars(record).items()
        if key not in _RESERVED_ATTRS and not key.startswith("_")
    }
    return redact_items(extras)


class _CorrelationFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = _CORRELATION_ID
        return True


class TextFormatter(logging.Formatter):
    """Single-line human readable records followed by redacted extras."""

    def __init__(self, zone: ZoneInfo) -> None:
        super().__init__()
        self._zone = zone

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created, self._zone).isoformat(timespec="milliseconds")
        line = (
            f"{timestamp} {record.levelname:<7} {record.name} "
            f"[{getattr(record, 'correlation_id', _CORRELATION_ID)}] {record.getMessage()}"
        )
        extras = _extras(record)
        if extras:
            line = f"{line} {json.dumps(extras, default=str, sort_keys=True)}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


class JsonFormatter(logging.Formatter):
    """One JSON object per record."""

    def __init__(self, zone: ZoneInfo) -> None:
        super().__init__()
        self._zone = zone

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "generated_at": datetime.fromtimestamp(record.created, self._zone).isoformat(timespec="seconds"),
            "timezone": self._zone.key,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "correlation_id": _CORRELATION_ID,
            "run_id": _CORRELATION_ID,
        }
        payload.update(_extras(record))
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def configure_logging(level: str | int = "INFO") -> logging.Logger:
    """Install a stdout handler on the root logger and return it.

    Calling this again replaces the handler installed by a previous call so the
    output mode (``RD_LOG_JSON``) and timezone (``RD_LOG_TZ``) can change
    between runs.
    """

    root = logging.getLogger()
    for handler in list(root.handlers):
        if getattr(handler, "_releasedraft", False):
            root.removeHandler(handler)

    zone = _zone()
    handler = logging.StreamHandler(sys.stdout)
    handler._releasedraft = True  # type: ignore[attr-defined]
    handler.addFilter(_CorrelationFilter())
    handler.setFormatter(JsonFormatter(zone) if _json_enabled() else TextFormatter(zone))
    root.addHandler(handler)

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    root.setLevel(level)
    return root


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


__all__ = [
    "DEFAULT_TIMEZONE",
    "JsonFormatter",
    "TextFormatter",
    "configure_logging",
    "get_correlation_id",
    "get_logger",
]
