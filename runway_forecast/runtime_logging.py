"""Structured JSONL event log for forecast runs and app diagnostics."""

from __future__ import annotations

import json
import os
import sys
import traceback
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import pandas as pd
from streamlit.runtime.scriptrunner import get_script_run_ctx


STORAGE_ENV_VAR = "RUNWAY_STORAGE_ROOT"
DEFAULT_LOG_DIR = Path(".local_store")
EVENTS_FILE_NAME = "runtime_events.jsonl"

LOG_DIR = DEFAULT_LOG_DIR
RUNTIME_EVENTS_LOG_FILE = LOG_DIR / EVENTS_FILE_NAME

EVENT_COLUMNS = ["timestamp_utc", "level", "event", "message", "context"]

_EXCEPTION_HOOK_INSTALLED = False


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _json_default(value: Any):
    if isinstance(value, (set, tuple, frozenset)):
        return list(value)
    if hasattr(value, "to_dict"):
        return value.to_dict()
    return str(value)


def resolve_log_root(path_value: str | Path | None) -> Path:
    text = "" if path_value is None else str(path_value).strip()
    if not text:
        return DEFAULT_LOG_DIR
    return Path(os.path.expandvars(os.path.expanduser(text)))


def configure_log_root(path_value: str | Path | None) -> Path:
    """Point the event log at `path_value` (blank means the default store)."""
    global LOG_DIR, RUNTIME_EVENTS_LOG_FILE
    LOG_DIR = resolve_log_root(path_value)
    RUNTIME_EVENTS_LOG_FILE = LOG_DIR / EVENTS_FILE_NAME
    return LOG_DIR


def runtime_log_path() -> str:
    return str(RUNTIME_EVENTS_LOG_FILE.resolve())


def _event_record(
    level: str,
    event: str,
    message: str,
    context: dict[str, Any] | None,
    exc: BaseException | None,
) -> dict[str, Any]:
    record: dict[str, Any] = {
        "timestamp_utc": _now_iso(),
        "level": str(level).upper(),
        "event": str(event),
        "message": str(message),
        "context": dict(context or {}),
    }
    if exc is not None:
        record["exception_type"] = type(exc).__name__
        record["exception_message"] = str(exc)
        record["traceback"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return record


def append_runtime_event(
    level: str,
    event: str,
    message: str,
    context: dict[str, Any] | None = None,
    exc: BaseException | None = None,
) -> None:
    """Append one event line; failures to write are reported on stderr only."""
    record = _event_record(level, event, message, context, exc)
    try:
        LOG_DIR.mkdir(parents=True, exist_ok=True)
        with RUNTIME_EVENTS_LOG_FILE.open("a", encoding="utf-8") as f:
            f.write(json.dumps(record, default=_json_default, ensure_ascii=False) + "\n")
    except OSError as err:
        print(f"runtime log unavailable ({err}); dropped event {record['event']}", file=sys.stderr)


def read_runtime_events(limit: int = 200, level: str | None = None) -> list[dict[str, Any]]:
    """Return up to `limit` most recent events, optionally filtered by level."""
    if limit <= 0 or not RUNTIME_EVENTS_LOG_FILE.exists():
        return []
    try:
        lines = RUNTIME_EVENTS_LOG_FILE.read_text(encoding="utf-8").splitlines()
    except OSError:
        return []

    out: list[dict[str, Any]] = []
    for line in lines:
        if not line.strip():
            continue
        try:
            out.append(json.loads(line))
        except json.JSONDecodeError:
            out.append(
                {
                    "timestamp_utc": _now_iso(),
                    "level": "ERROR",
                    "event": "log_parse_error",
                    "message": "Malformed log line encountered.",
                    "context": {"line": line},
                }
            )
    if level is not None:
        wanted = str(level).upper()
        out = [e for e in out if e.get("level") == wanted]
    return out[-int(limit) :]


def runtime_events_frame(limit: int = 200) -> pd.DataFrame:
    events = read_runtime_events(limit=limit)
    df = pd.DataFrame(events, columns=EVENT_COLUMNS)
    if not df.empty:
        df["context"] = df["context"].map(lambda c: json.dumps(c, default=_json_default, ensure_ascii=False))
    return df


def install_global_exception_logging() -> None:
    """Record uncaught exceptions raised inside a Streamlit script run."""
    global _EXCEPTION_HOOK_INSTALLED
    if _EXCEPTION_HOOK_INSTALLED:
        return
    old_hook = sys.excepthook

    def _hook(exc_type, exc, exc_tb):
        # Plain scripts importing the package keep the default behaviour.
        if get_script_run_ctx() is not None:
            append_runtime_event(
                level="ERROR",
                event="uncaught_exception",
                message=str(exc),
                exc=exc,
            )
        old_hook(exc_type, exc, exc_tb)

    sys.excepthook = _hook
    _EXCEPTION_HOOK_INSTALLED = True


# Deployments relocate the event log by setting RUNWAY_STORAGE_ROOT before import.
configure_log_root(os.getenv(STORAGE_ENV_VAR, ""))
