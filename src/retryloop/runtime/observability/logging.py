"""Logging setup for retryloop.

Library modules log through stdlib loggers under the "retryloop" namespace
("retryloop.retry", "retryloop.retry.transient"). Applications that want
retryloop's own output format attach it here:
- Human-readable text for development
- JSON Lines (orjson) for log aggregation

Quick Start:
    >>> from retryloop.runtime.observability import configure_logging
    >>> configure_logging(format="json", level="DEBUG")

Defaults come from LoggingSettings (RETRYLOOP_LOG_LEVEL, RETRYLOOP_LOG_FORMAT).
"""

from __future__ import annotations

import logging
import sys
from datetime import UTC, datetime
from typing import TextIO

import orjson

from retryloop.foundation.config import get_settings

ROOT_LOGGER = "retryloop"

# Attributes every LogRecord has; anything else came in through `extra=`
_RESERVED = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    """One JSON object per line: timestamp, level, logger, event, plus extras."""

    def format(self, record: logging.LogRecord) -> str:
        data = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "event": record.getMessage(),
            **{k: v for k, v in vars(record).items() if k not in _RESERVED},
        }
        if record.exc_info:
            data["exc_info"] = self.formatException(record.exc_info)
        return orjson.dumps(data, default=str, option=orjson.OPT_NON_STR_KEYS).decode()


class TextFormatter(logging.Formatter):
    """Format: timestamp [level] logger: event"""

    def __init__(self) -> None:
        super().__init__("%(asctime)s [%(levelname)s] %(name)s: %(message)s", datefmt="%Y-%m-%d %H:%M:%S")


def configure_logging(
    format: str | None = None,  # noqa: A002 - shadows builtin but matches stdlib
    level: str | None = None,
    *,
    output: TextIO | None = None,
) -> logging.Handler:
    """Attach a handler to the "retryloop" logger. Format: "text" or "json".

    Replaces a handler installed by an earlier call, so it is safe to call
    repeatedly. Unset arguments fall back to LoggingSettings.
    """
    settings = get_settings().logging
    fmt, lvl = format or settings.format, (level or settings.level).upper()
    match fmt:
        case "text": formatter: logging.Formatter = TextFormatter()
        case "json": formatter = JsonFormatter()
        case _: raise ValueError(f"Unknown format: {fmt}. Use 'text' or 'json'")

    root = logging.getLogger(ROOT_LOGGER)
    for old in [h for h in root.handlers if getattr(h, "_retryloop", False)]:
        root.removeHandler(old)

    handler = logging.StreamHandler(output or sys.stderr)
    handler.setFormatter(formatter)
    handler._retryloop = True  # type: ignore[attr-defined]
    root.addHandler(handler)
    root.setLevel(getattr(logging, lvl, logging.INFO))
    return handler


def get_logger(name: str | None = None) -> logging.Logger:
    """Logger under the retryloop namespace."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}" if name else ROOT_LOGGER)
