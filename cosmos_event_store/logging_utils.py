"""
Logging helpers for event store bootstrap.

Bootstrap runs once per bounded context at application start, so each
line is stamped with the bounded context and collection link it concerns.
EventStoreJsonFormatter lifts those into fixed top-level fields and, when
an EventStoreError is being logged, its structured details as well.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import IO, Any

from .exceptions import EventStoreError

PACKAGE_LOGGER = "cosmos_event_store"

# Context fields promoted to the top level of every JSON line
FIXED_FIELDS = ("bounded_context", "collection_link")

# Attributes present on every LogRecord
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class EventStoreJsonFormatter(logging.Formatter):
    """One JSON object per line.

    Shape::

        {"timestamp": ..., "level": ..., "logger": ..., "message": ...,
         "bounded_context": ..., "collection_link": ...,
         "context": {<other extra fields>},
         "error": {"type": ..., "message": ..., "details": {...}}}
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for field in FIXED_FIELDS:
            entry[field] = getattr(record, field, None)

        context = {
            key: value
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS and key not in FIXED_FIELDS and not key.startswith("_")
        }
        if context:
            entry["context"] = context

        if record.exc_info and record.exc_info[1] is not None:
            entry["error"] = _describe_error(record.exc_info[1])
            entry["traceback"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


def _describe_error(exc: BaseException) -> dict[str, Any]:
    error: dict[str, Any] = {"type": type(exc).__name__, "message": str(exc)}
    if isinstance(exc, EventStoreError):
        error["details"] = exc.details
    return error


def configure_event_store_logging(
    level: int = logging.INFO,
    stream: IO[str] | None = None,
) -> logging.Logger:
    """Send this package's log lines to ``stream`` (stdout by default) as JSON.

    Only the ``cosmos_event_store`` logger is touched; calling this again
    replaces the handler rather than adding a second one.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in [h for h in logger.handlers if isinstance(h.formatter, EventStoreJsonFormatter)]:
        logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(EventStoreJsonFormatter())
    logger.addHandler(handler)
    logger.setLevel(level)
    return logger


def get_event_store_logger(name: str) -> logging.Logger:
    """Logger named ``cosmos_event_store.{name}``."""
    return logging.getLogger(f"{PACKAGE_LOGGER}.{name}")


class EventStoreLoggerAdapter(logging.LoggerAdapter):
    """Adds the adapter's context (e.g. bounded_context) to every record."""

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        extra = dict(kwargs.get("extra") or {})
        extra.update(self.extra or {})
        kwargs["extra"] = extra
        return msg, kwargs
