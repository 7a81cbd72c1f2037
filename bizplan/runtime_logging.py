"""Structured JSONL event log for runtime diagnostics.

Each line of ``app_events.jsonl`` is one event: UTC timestamp, level, event
name, message and a free-form context dict. Planning actions, export fallbacks
and uncaught script exceptions all land here and are browsable on the
settings page.
"""

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


LOG_FILE_NAME = "app_events.jsonl"
LEVELS = {"DEBUG": 10, "INFO": 20, "WARNING": 30, "ERROR": 40}
EVENT_COLUMNS = ["timestamp_utc", "level", "event", "message"]

_DEFAULT_LOG_DIR = Path(".local_store")
_STORAGE_ENV_VAR = "BIZPLAN_STORAGE_ROOT"

LOG_DIR = _DEFAULT_LOG_DIR
RUNTIME_EVENTS_LOG_FILE = LOG_DIR / LOG_FILE_NAME

_EXCEPTION_HOOK_INSTALLED = False


def _utc_stamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def _normalize_level(level: str) -> str:
    text = str(level).strip().upper()
    return text if text in LEVELS else "INFO"


def _json_fallback(value: Any):
    if isinstance(value, (set, tuple)):
        return list(value)
    return str(value)


def configure_log_root(path_value: str | Path | None) -> Path:
    """Point the event log at `path_value`; blank means the default store directory."""
    global LOG_DIR, RUNTIME_EVENTS_LOG_FILE
    text = "" if path_value is None else str(path_value).strip()
    LOG_DIR = Path(os.path.expandvars(os.path.expanduser(text))) if text else _DEFAULT_LOG_DIR
    RUNTIME_EVENTS_LOG_FILE = LOG_DIR / LOG_FILE_NAME
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
        "timestamp_utc": _utc_stamp(),
        "level": _normalize_level(level),
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
    """Append one event line; an unwritable log directory is silently skipped."""
    line = json.dumps(_event_record(level, event, message, context, exc), default=_json_fallback, ensure_ascii=False)
    try:
        LOG_DIR.mkdir(parents=True, exist_ok=True)
        with RUNTIME_EVENTS_LOG_FILE.open("a", encoding="utf-8") as f:
            f.write(line + "\n")
    except OSError:
        return


def _parse_line(line: str) -> dict[str, Any]:
    try:
        parsed = json.loads(line)
    except json.JSONDecodeError:
        parsed = None
    if isinstance(parsed, dict):
        return parsed
    return {
        "timestamp_utc": _utc_stamp(),
        "level": "ERROR",
        "event": "log_parse_error",
        "message": "Malformed log line encountered.",
        "context": {"line": line},
    }


def read_runtime_events(limit: int = 200) -> list[dict[str, Any]]:
    """The last `limit` events in file order (oldest first)."""
    if limit <= 0 or not RUNTIME_EVENTS_LOG_FILE.exists():
        return []
    try:
        lines = RUNTIME_EVENTS_LOG_FILE.read_text(encoding="utf-8").splitlines()
    except OSError:
        return []
    lines = [line for line in lines if line.strip()]
    return [_parse_line(line) for line in lines[-int(limit) :]]


def runtime_events_frame(limit: int = 200, min_level: str | None = None) -> pd.DataFrame:
    events = read_runtime_events(limit)
    if min_level:
        floor = LEVELS[_normalize_level(min_level)]
        events = [e for e in events if LEVELS.get(str(e.get("level", "")).upper(), 0) >= floor]
    frame = pd.DataFrame(events, columns=EVENT_COLUMNS)
    return frame.iloc[::-1].reset_index(drop=True)


def clear_runtime_events() -> None:
    RUNTIME_EVENTS_LOG_FILE.unlink(missing_ok=True)


def install_global_exception_logging() -> None:
    """Record uncaught exceptions raised during Streamlit script runs, then defer to the previous hook."""
    global _EXCEPTION_HOOK_INSTALLED
    if _EXCEPTION_HOOK_INSTALLED:
        return
    previous_hook = sys.excepthook

    def _log_uncaught(exc_type, exc, exc_tb):
        # Outside a script run (plain imports, CLI use) nothing is recorded.
        if get_script_run_ctx() is not None:
            append_runtime_event(level="ERROR", event="uncaught_exception", message=str(exc), exc=exc)
        previous_hook(exc_type, exc, exc_tb)

    sys.excepthook = _log_uncaught
    _EXCEPTION_HOOK_INSTALLED = True


configure_log_root(os.getenv(_STORAGE_ENV_VAR, ""))
