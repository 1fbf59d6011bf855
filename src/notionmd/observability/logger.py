"""Structured JSON logging for notionmd.

Each record is written to stderr as one JSON object per line::

    {"ts": "2026-01-05T09:12:44.017211+00:00", "level": "INFO",
     "logger": "notionmd.exporter", "message": "page exported",
     "page_id": "1f2e...", "file_name": "Trip.md", "duration_ms": 412.7}

Structured fields travel in ``extra={"extra_fields": {...}}``.  All
package loggers are children of ``"notionmd"``, which owns the single
handler; :func:`set_level` adjusts that root logger.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

ROOT_LOGGER = "notionmd"


class StructuredFormatter(logging.Formatter):
    """Render log records as single-line JSON objects.

    Guaranteed keys are ``ts``, ``level``, ``logger`` and ``message``.
    ``extra_fields`` are merged at the top level; they never overwrite
    the guaranteed keys.  ``exception`` is added when ``exc_info`` is set.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        extra_fields: dict[str, Any] | None = getattr(record, "extra_fields", None)
        if extra_fields:
            for key, value in extra_fields.items():
                entry.setdefault(key, value)

        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str, ensure_ascii=False)


def _ensure_root_handler(stream: Any | None) -> logging.Logger:
    root = logging.getLogger(ROOT_LOGGER)
    if not any(getattr(h, "_notionmd", False) for h in root.handlers):
        handler = logging.StreamHandler(stream or sys.stderr)
        handler.setFormatter(StructuredFormatter())
        handler._notionmd = True  # type: ignore[attr-defined]
        root.addHandler(handler)
        root.setLevel(logging.WARNING)
        # Records stop here; the global root logger never sees them.
        root.propagate = False
    return root


def get_logger(name: str = ROOT_LOGGER, *, stream: Any | None = None) -> logging.Logger:
    """Return a logger under the ``notionmd`` hierarchy.

    The first call attaches a :class:`StructuredFormatter` handler to the
    ``notionmd`` root logger (default level ``WARNING``).  Later calls
    never add another handler.  Names outside the hierarchy are nested
    under it, so ``get_logger("tree")`` yields ``notionmd.tree``.
    """
    _ensure_root_handler(stream)
    if name != ROOT_LOGGER and not name.startswith(ROOT_LOGGER + "."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)


def set_level(level: int | str) -> None:
    """Set the level of the ``notionmd`` root logger.

    Accepts an ``int`` or a case-insensitive level name (``"info"``).
    """
    resolved = logging.getLevelName(level.upper()) if isinstance(level, str) else level
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level!r}")
    _ensure_root_handler(None).setLevel(resolved)
