from __future__ import annotations

"""Structured JSON logging for the scanner core and CLI.

Features:
 * Thread-safe idempotent configuration (probe workers log concurrently)
 * Safe reconfiguration (log level & static fields update)
 * UTC timestamps with millisecond precision (Z suffix)
 * Events and per-event data kept apart from the base record
 * Non-serializable values (addresses, enums) rendered with str()

Module loggers are children of ``edgescan`` (``logging.getLogger(__name__)``)
and propagate into the handler installed here.

Usage example:
    from edgescan.clean_ip.logging_setup import configure_json_logging
    logger = configure_json_logging(level="INFO")
    logger.info(
        "scan started",
        extra={"event": "scan_started", "fields": {"sampled": 30}},
    )
"""

from datetime import datetime, timezone
import json
import logging
import sys
from threading import RLock
from typing import Any, Mapping

_DEFAULT_LOGGER_NAME = "edgescan"
_HANDLER_MARK = "_edgescan_json"

_lock = RLock()


def _coerce_level(level: int | str) -> int:
    if isinstance(level, int):
        return level
    lvl = logging.getLevelName(str(level).upper())
    return lvl if isinstance(lvl, int) else logging.INFO


class JsonFormatter(logging.Formatter):
    """One JSON object per line."""

    def __init__(self, *, static: dict[str, Any] | None = None) -> None:
        super().__init__()
        self._static = static or {}

    def format(self, record: logging.LogRecord) -> str:
        ts = (
            datetime.fromtimestamp(record.created, timezone.utc)
            .isoformat(timespec="milliseconds")
            .replace("+00:00", "Z")
        )
        msg = record.getMessage()
        event = getattr(record, "event", None)
        if event == msg:
            event = None

        base: dict[str, Any] = {
            "ts": ts,
            "level": record.levelname.lower(),
            "logger": record.name,
            "thread": record.threadName,
            "func": record.funcName,
            "line": record.lineno,
            "msg": msg,
        }
        if event:
            base["event"] = event
        if self._static:
            base["static"] = self._static

        fields_obj = getattr(record, "fields", None)
        if isinstance(fields_obj, Mapping) and fields_obj:
            base["fields"] = dict(fields_obj)
        elif fields_obj is not None and not isinstance(fields_obj, Mapping):
            base["fields"] = {"_fields_type": str(type(fields_obj))}

        if record.exc_info:
            base["exc"] = self.formatException(record.exc_info)

        return json.dumps(base, ensure_ascii=False, separators=(",", ":"), default=str)


def configure_json_logging(
    *,
    logger_name: str = _DEFAULT_LOGGER_NAME,
    level: int | str = "INFO",
    stream: Any | None = None,
    force: bool = False,
    extra_static: dict[str, Any] | None = None,
) -> logging.Logger:
    """Configure or update the JSON logger.

    stream defaults to sys.stderr so CLI output on stdout stays clean.
    force replaces the existing handler (e.g. to switch streams).
    """
    numeric_level = _coerce_level(level)
    with _lock:
        logger = logging.getLogger(logger_name)
        logger.propagate = False
        logger.setLevel(numeric_level)

        existing = next((h for h in logger.handlers if getattr(h, _HANDLER_MARK, False)), None)

        if existing is not None and not force:
            existing.setLevel(numeric_level)
            existing.setFormatter(JsonFormatter(static=extra_static))
            return logger

        if existing is not None:
            logger.removeHandler(existing)

        handler = logging.StreamHandler(stream or sys.stderr)
        handler.setLevel(numeric_level)
        handler.setFormatter(JsonFormatter(static=extra_static))
        setattr(handler, _HANDLER_MARK, True)
        logger.addHandler(handler)
        return logger


__all__ = [
    "configure_json_logging",
    "JsonFormatter",
]
