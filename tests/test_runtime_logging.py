from __future__ import annotations

from pathlib import Path

import runway_forecast.runtime_logging as runtime_logging


def test_runtime_logging_append_and_read(runtime_log):
    runtime_logging.append_runtime_event(
        level="warning",
        event="test_event",
        message="Test warning.",
        context={"case": "append_and_read", "months": ("2025-01", "2025-02")},
    )
    events = runtime_logging.read_runtime_events(limit=10)
    assert len(events) == 1
    assert events[0]["event"] == "test_event"
    assert events[0]["level"] == "WARNING"
    assert events[0]["context"]["case"] == "append_and_read"
    assert events[0]["context"]["months"] == ["2025-01", "2025-02"]


def test_runtime_logging_records_exception_details(runtime_log):
    try:
        raise ValueError("months must be non-negative.")
    except ValueError as exc:
        runtime_logging.append_runtime_event("error", "forecast_failed", str(exc), exc=exc)

    event = runtime_logging.read_runtime_events()[0]
    assert event["exception_type"] == "ValueError"
    assert "months must be non-negative." in event["traceback"]


def test_runtime_logging_handles_malformed_lines(runtime_log):
    runtime_log.write_text(
        '{"event":"ok","level":"INFO","timestamp_utc":"2026-01-01T00:00:00+00:00","message":"ok","context":{}}\nnot-json\n\n',
        encoding="utf-8",
    )
    events = runtime_logging.read_runtime_events(limit=10)
    assert len(events) == 2
    assert events[0]["event"] == "ok"
    assert events[1]["event"] == "log_parse_error"


def test_read_runtime_events_limit_and_level_filter(runtime_log):
    for i in range(5):
        runtime_logging.append_runtime_event("info", f"event_{i}", "info")
    runtime_logging.append_runtime_event("error", "boom", "error")

    assert [e["event"] for e in runtime_logging.read_runtime_events(limit=2)] == ["event_4", "boom"]
    assert [e["event"] for e in runtime_logging.read_runtime_events(level="ERROR")] == ["boom"]
    assert runtime_logging.read_runtime_events(limit=0) == []


def test_runtime_events_frame(runtime_log):
    assert list(runtime_logging.runtime_events_frame().columns) == runtime_logging.EVENT_COLUMNS
    runtime_logging.append_runtime_event("info", "forecast_built", "ok", context={"months": 12})
    df = runtime_logging.runtime_events_frame()
    assert len(df) == 1
    assert df.loc[0, "context"] == '{"months": 12}'


def test_configure_log_root_expands_env_vars(tmp_path, monkeypatch):
    original = runtime_logging.LOG_DIR
    monkeypatch.setenv("RUNWAY_TEST_ROOT", str(tmp_path))
    try:
        root = runtime_logging.configure_log_root("$RUNWAY_TEST_ROOT/logs")
        assert root == Path(tmp_path) / "logs"
        assert runtime_logging.RUNTIME_EVENTS_LOG_FILE == Path(tmp_path) / "logs" / "runtime_events.jsonl"
        assert runtime_logging.configure_log_root("  ") == runtime_logging.DEFAULT_LOG_DIR
    finally:
        runtime_logging.configure_log_root(original)
