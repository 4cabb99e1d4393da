"""Tests for structured (JSON) logging output."""

from __future__ import annotations

import json
import logging
import sys

from enrollview.core.logging import _ContainerFormatter, _JsonFormatter


def _record(msg: str = "test message", level: int = logging.INFO, **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="enrollview.test",
        level=level,
        pathname="test.py",
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_produces_valid_json() -> None:
    parsed = json.loads(_JsonFormatter().format(_record("Hello world")))
    assert parsed["level"] == "INFO"
    assert parsed["logger"] == "enrollview.test"
    assert parsed["message"] == "Hello world"
    assert "timestamp" in parsed


def test_json_formatter_includes_request_fields() -> None:
    record = _record(request_id="abc-123", method="GET", path="/health", duration_ms=12.5)
    parsed = json.loads(_JsonFormatter().format(record))
    assert parsed["request_id"] == "abc-123"
    assert parsed["method"] == "GET"
    assert parsed["path"] == "/health"
    assert parsed["duration_ms"] == 12.5


def test_json_formatter_includes_aggregation_fields() -> None:
    record = _record(
        "Skipping enrollment",
        level=logging.WARNING,
        enrollment_id="e1",
        reason="dangling_course",
    )
    parsed = json.loads(_JsonFormatter().format(record))
    assert parsed["enrollment_id"] == "e1"
    assert parsed["reason"] == "dangling_course"
    assert "course_id" not in parsed


def test_json_formatter_includes_exception_info() -> None:
    formatter = _JsonFormatter()
    try:
        raise ValueError("test error")
    except ValueError:
        record = _record("Something failed", level=logging.ERROR)
        record.exc_info = sys.exc_info()
        output = formatter.format(record)

    parsed = json.loads(output)
    assert "ValueError: test error" in parsed["exception"]


def test_container_formatter_is_plain_text() -> None:
    output = _ContainerFormatter().format(_record("server started"))
    assert "INFO" in output
    assert "enrollview.test" in output
    assert "server started" in output
    assert not output.startswith("{")
