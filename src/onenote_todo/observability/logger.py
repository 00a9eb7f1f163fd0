"""JSON-lines logging for onenote_todo.

Every record becomes one JSON object::

    {"ts": "2026-01-05T09:14:02.511204+00:00", "level": "INFO",
     "logger": "onenote_todo.sync", "message": "OneNote page created",
     "op": "bootstrap", "identity": "u-123", "kind": "page"}

Structured fields travel in ``extra={"extra_fields": {...}}``::

    log = get_logger("onenote_todo.sync")
    log.info("Todo list saved", extra={"extra_fields": {"items": 3}})

Identities may be logged; access tokens never.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import IO, Any

_CORE_KEYS = ("ts", "level", "logger", "message")


class StructuredFormatter(logging.Formatter):
    """Format a record as a single JSON line.

    ``ts`` is the record's creation time in UTC.  ``extra_fields`` are
    merged at top level but cannot shadow the core keys.  Tracebacks land
    in ``exception`` and ``stack_info``.
    """

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        entry: dict[str, Any] = dict(
            zip(
                _CORE_KEYS,
                (created.isoformat(), record.levelname, record.name, record.getMessage()),
            )
        )
        for key, value in (getattr(record, "extra_fields", None) or {}).items():
            entry.setdefault(key, value)

        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        if record.stack_info:
            entry["stack_info"] = self.formatStack(record.stack_info)

        return json.dumps(entry, default=str)


class _JsonHandler(logging.StreamHandler):
    """Marker type so :func:`get_logger` can recognise its own handler."""


def get_logger(
    name: str = "onenote_todo",
    *,
    level: int | str = logging.DEBUG,
    stream: IO[str] | None = None,
) -> logging.Logger:
    """Return *name*'s logger, wired to a JSON handler on first use.

    *level* accepts an int or a level name in any case.  *stream* defaults
    to ``sys.stderr``.  Later calls for the same name return the logger
    unchanged, so module-level ``log = get_logger(...)`` is safe.  Records
    do not propagate to the root logger.
    """
    logger = logging.getLogger(name)
    if any(isinstance(h, _JsonHandler) for h in logger.handlers):
        return logger

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    logger.setLevel(level)

    handler = _JsonHandler(stream or sys.stderr)
    handler.setFormatter(StructuredFormatter())
    logger.addHandler(handler)
    logger.propagate = False
    return logger
