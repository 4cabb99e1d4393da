"""Logging configuration for enrollview.

Everything goes to stdout, in one of two shapes selected by LOG_JSON:

  container lines (default)
    2026-10-18T09:12:44.120+0000 WARNING  enrollview.services.enrollment_service
      Skipping enrollment e-17: course does not resolve  enrollment_id=e-17
      reason=dangling_course  [enrollment_service.py:312]

  JSON Lines
    {"timestamp": ..., "level": "WARNING", "logger": ..., "message": ...,
     "enrollment_id": "e-17", "reason": "dangling_course"}

Call sites attach context with `extra={...}`; any key listed in
CONTEXT_FIELDS is rendered by both formatters.  The request-context
middleware fills in request_id for every record.
"""

from __future__ import annotations

import json
import logging
import sys
import time

# Keys a record may carry through `extra=`, in rendering order.
CONTEXT_FIELDS = (
    "request_id",
    "method",
    "path",
    "status_code",
    "duration_ms",
    "user_id",
    "enrollment_id",
    "course_id",
    "reason",
)

# Rendered inline by the container formatter; the request summary fields
# are already spelled out in the access line's message.
_INLINE_FIELDS = ("enrollment_id", "course_id", "reason")

# Chatty third-party loggers, held at WARNING unless the root is quieter.
_QUIET_LOGGERS = (
    "uvicorn",
    "uvicorn.access",
    "uvicorn.error",
    "sqlalchemy.engine",
    "httpx",
)


def _timestamp(record: logging.LogRecord) -> str:
    """ISO-8601 with milliseconds and a numeric UTC offset."""
    local = time.localtime(record.created)
    stamp = time.strftime("%Y-%m-%dT%H:%M:%S", local)
    offset = time.strftime("%z", local)
    return f"{stamp}.{int(record.msecs):03d}{offset}"


def _context(record: logging.LogRecord, keys: tuple[str, ...]) -> dict[str, object]:
    return {
        key: value
        for key in keys
        if (value := getattr(record, key, None)) is not None
    }


class _ContainerFormatter(logging.Formatter):
    """One human-readable line per record.

    WARNING and above end with [filename:lineno]; tracebacks follow on
    the next lines when the caller used logger.exception().
    """

    def format(self, record: logging.LogRecord) -> str:
        line = (
            f"{_timestamp(record)} {record.levelname:<8} {record.name}  "
            f"{record.getMessage()}"
        )

        inline = _context(record, _INLINE_FIELDS)
        if inline:
            line += "  " + " ".join(f"{k}={v}" for k, v in inline.items())

        if record.levelno >= logging.WARNING:
            line += f"  [{record.filename}:{record.lineno}]"

        if record.exc_info and record.exc_info[0] is not None:
            line += "\n" + self.formatException(record.exc_info)
        return line


class _JsonFormatter(logging.Formatter):
    """One JSON object per line; context fields become top-level keys."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "timestamp": _timestamp(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **_context(record, CONTEXT_FIELDS),
        }
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def setup_logging(level_name: str, *, json_format: bool = False) -> None:
    """Install a single stdout handler on the root logger.

    Args:
        level_name: debug/info/warning/error; unknown names fall back to info.
        json_format: emit JSON Lines instead of container lines.
    """
    level = getattr(logging, level_name.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(_JsonFormatter() if json_format else _ContainerFormatter())

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    root.addHandler(handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
