import logging

import pytest

from stdout_mcp.logs.buffer import LogBuffer
from stdout_mcp.logs.models import LogEntry


def _entry(message: str, millis: int = 0) -> LogEntry:
    seconds, ms = divmod(millis, 1000)
    return LogEntry(timestamp=f"1970-01-01T00:00:{seconds:02d}.{ms:03d}Z", message=message)


def test_keeps_last_capacity_entries_in_order():
    buffer = LogBuffer(capacity=100)
    for i in range(250):
        buffer.append(_entry(f"line {i}"))

    assert len(buffer) == 100
    assert [e.message for e in buffer.snapshot()] == [f"line {i}" for i in range(150, 250)]


def test_rejects_zero_capacity():
    with pytest.raises(ValueError):
        LogBuffer(capacity=0)


def test_filter_is_case_insensitive_and_keeps_order():
    buffer = LogBuffer()
    for msg in ["Error: disk full", "Info: ok", "ERROR: retry"]:
        buffer.append(_entry(msg))

    result = buffer.query(filter="error")
    assert [e.message for e in result] == ["Error: disk full", "ERROR: retry"]


def test_since_is_strictly_greater():
    buffer = LogBuffer()
    for ms in (100, 200, 300):
        buffer.append(_entry(f"at {ms}", ms))

    assert [e.message for e in buffer.query(since=150)] == ["at 200", "at 300"]
    assert [e.message for e in buffer.query(since=200)] == ["at 300"]


def test_fractional_since_keeps_strict_comparison():
    buffer = LogBuffer()
    for ms in (100, 200, 300):
        buffer.append(_entry(f"at {ms}", ms))

    assert [e.message for e in buffer.query(since=150.5)] == ["at 200", "at 300"]
    assert [e.message for e in buffer.query(since=199.999)] == ["at 200", "at 300"]
    assert [e.message for e in buffer.query(since=200.0)] == ["at 300"]


def test_max_lines_returns_most_recent_oldest_first():
    buffer = LogBuffer()
    for i in range(1, 6):
        buffer.append(_entry(f"entry {i}"))

    assert [e.message for e in buffer.query(max_lines=2)] == ["entry 4", "entry 5"]


@pytest.mark.parametrize("max_lines", [0, -3, None, 500])
def test_non_positive_or_large_max_lines_returns_everything(max_lines):
    buffer = LogBuffer()
    for i in range(7):
        buffer.append(_entry(f"entry {i}"))

    assert len(buffer.query(max_lines=max_lines)) == 7


def test_default_max_lines_is_fifty():
    buffer = LogBuffer()
    for i in range(80):
        buffer.append(_entry(f"entry {i}"))

    result = buffer.query()
    assert len(result) == 50
    assert result[0].message == "entry 30"


def test_filters_combine_before_bounding():
    buffer = LogBuffer()
    buffer.append(_entry("error one", 100))
    buffer.append(_entry("info", 200))
    buffer.append(_entry("error two", 300))
    buffer.append(_entry("error three", 400))

    result = buffer.query(max_lines=1, filter="ERROR", since=150)
    assert [e.message for e in result] == ["error three"]


def test_malformed_timestamp_is_excluded_from_since(caplog):
    buffer = LogBuffer()
    buffer.append(LogEntry(timestamp="not-a-time", message="broken"))
    buffer.append(_entry("fine", 500))

    with caplog.at_level(logging.WARNING, logger="stdout_mcp"):
        result = buffer.query(since=0)

    assert [e.message for e in result] == ["fine"]
    assert "malformed timestamp" in caplog.text


def test_query_result_is_a_snapshot():
    buffer = LogBuffer()
    buffer.append(_entry("first"))
    result = buffer.query()
    buffer.append(_entry("second"))

    assert [e.message for e in result] == ["first"]


def test_clear_empties_buffer():
    buffer = LogBuffer(capacity=3)
    buffer.append(_entry("x"))
    buffer.clear()
    assert len(buffer) == 0
    assert buffer.capacity == 3
