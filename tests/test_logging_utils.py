import io
import json
import logging

import pytest

from grn.logging_utils import JsonFormatter, configure_logging, resolve_log_level


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("debug", logging.DEBUG),
        ("INFO", logging.INFO),
        ("warn", logging.WARNING),
        ("warning", logging.WARNING),
        ("error", logging.ERROR),
        ("verbose", logging.INFO),
        (None, logging.INFO),
    ],
)
def test_resolve_log_level(value, expected) -> None:  # noqa: ANN001
    assert resolve_log_level(value) == expected


def test_json_formatter_fields() -> None:
    record = logging.LogRecord(
        name="grn.checker",
        level=logging.WARNING,
        pathname="/x/grn/checker.py",
        lineno=42,
        msg="failed to query latest release: repository=%s",
        args=("a/b",),
        exc_info=None,
    )
    entry = json.loads(JsonFormatter().format(record))

    assert entry["msg"] == "failed to query latest release: repository=a/b"
    assert entry["level"] == "warning"
    assert entry["caller"] == "checker.py:42"
    assert entry["logger"] == "grn.checker"
    assert entry["ts"].endswith("Z")


def test_configure_logging_writes_json_lines_and_filters_levels() -> None:
    stream = io.StringIO()
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    try:
        configure_logging("warn", stream=stream)
        log = logging.getLogger("grn.test")
        log.info("hidden")
        log.warning("shown: key=%s", "value")
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            log.exception("crashed")
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)

    lines = [json.loads(line) for line in stream.getvalue().splitlines()]
    assert [e["msg"] for e in lines] == ["shown: key=value", "crashed"]
    assert "RuntimeError: boom" in lines[1]["exc"]
