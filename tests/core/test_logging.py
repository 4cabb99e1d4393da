from __future__ import annotations

import logging

import pytest

from enrollview.core.logging import _ContainerFormatter, setup_logging


def _record(level: int, msg: str = "hello", **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="enrollview.test",
        level=level,
        pathname="svc.py",
        lineno=42,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("debug", logging.DEBUG),
        ("warning", logging.WARNING),
        ("nonexistent", logging.INFO),
    ],
)
def test_setup_logging_sets_root_level(name: str, expected: int) -> None:
    setup_logging(name)
    assert logging.getLogger().level == expected


@pytest.mark.parametrize("noisy", ["uvicorn", "sqlalchemy.engine", "httpx"])
def test_third_party_loggers_stay_at_warning(noisy: str) -> None:
    setup_logging("debug")
    assert logging.getLogger(noisy).level == logging.WARNING

    setup_logging("error")
    assert logging.getLogger(noisy).level == logging.ERROR


def test_setup_logging_replaces_handlers() -> None:
    setup_logging("info")
    setup_logging("info", json_format=True)
    assert len(logging.getLogger().handlers) == 1


def test_location_only_at_warning_and_above() -> None:
    fmt = _ContainerFormatter()
    assert "[svc.py:42]" not in fmt.format(_record(logging.INFO))
    assert "[svc.py:42]" in fmt.format(_record(logging.WARNING))
    assert "[svc.py:42]" in fmt.format(_record(logging.ERROR))


def test_container_line_shape() -> None:
    output = _ContainerFormatter().format(_record(logging.INFO, "server started"))
    assert " INFO     enrollview.test  server started" in output
    assert "\n" not in output


def test_container_line_renders_aggregation_context() -> None:
    output = _ContainerFormatter().format(
        _record(logging.WARNING, "skipped", enrollment_id="e1", reason="dangling_course")
    )
    assert "enrollment_id=e1 reason=dangling_course" in output
    assert "request_id" not in output
