"""Local JSON record store for planning data."""

from __future__ import annotations

import json
import os
from copy import deepcopy
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable
from uuid import uuid4

from bizplan.schema import RECORD_KINDS, SCHEMA_VERSION


STORE_DIR = Path(".local_store")

_DEFAULT_STORE_DIR = Path(".local_store")
_STORAGE_ENV_VAR = "BIZPLAN_STORAGE_ROOT"


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def new_id() -> str:
    return uuid4().hex


def _expand_storage_root(path_value: str | Path | None) -> Path:
    if path_value is None:
        return _DEFAULT_STORE_DIR
    text = str(path_value).strip()
    if not text:
        return _DEFAULT_STORE_DIR
    expanded = os.path.expandvars(os.path.expanduser(text))
    return Path(expanded)


def configure_storage_root(path_value: str | Path | None) -> Path:
    """Configure the directory that holds one JSON file per record kind."""

    global STORE_DIR
    STORE_DIR = _expand_storage_root(path_value)
    return STORE_DIR


def storage_root_path() -> str:
    return str(STORE_DIR.resolve())


def storage_root_from_env() -> Path:
    return _expand_storage_root(os.getenv(_STORAGE_ENV_VAR, ""))


def _path_for(kind: str) -> Path:
    if kind not in RECORD_KINDS:
        raise ValueError(f"Unsupported record kind: {kind}")
    return STORE_DIR / f"{kind}.json"


def _load_store(kind: str) -> dict[str, dict]:
    p = _path_for(kind)
    if not p.exists():
        return {}
    try:
        payload = json.loads(p.read_text(encoding="utf-8"))
    except json.JSONDecodeError:
        return {}
    if not isinstance(payload, dict):
        return {}
    records = payload.get("records", {})
    return records if isinstance(records, dict) else {}


def _save_store(kind: str, records: dict[str, dict]) -> None:
    STORE_DIR.mkdir(parents=True, exist_ok=True)
    p = _path_for(kind)
    tmp = p.with_suffix(f"{p.suffix}.tmp")
    payload = {"kind": kind, "schema_version": SCHEMA_VERSION, "records": records}
    tmp.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
    tmp.replace(p)


def list_records(kind: str, where: Callable[[dict], bool] | None = None) -> list[dict]:
    records = [deepcopy(r) for r in _load_store(kind).values()]
    if where is not None:
        records = [r for r in records if where(r)]
    return sorted(records, key=lambda r: str(r.get("created_at", "")))


def get_record(kind: str, record_id: str) -> dict | None:
    return deepcopy(_load_store(kind).get(record_id))


def insert_record(kind: str, record: dict) -> dict:
    store = _load_store(kind)
    out = deepcopy(record)
    out["id"] = str(out.get("id") or new_id())
    stamp = now_iso()
    out["created_at"] = out.get("created_at") or stamp
    out["updated_at"] = stamp
    store[out["id"]] = out
    _save_store(kind, store)
    return deepcopy(out)


def update_record(kind: str, record_id: str, updates: dict[str, Any]) -> dict | None:
    store = _load_store(kind)
    if record_id not in store:
        return None
    store[record_id].update(deepcopy(updates))
    store[record_id]["id"] = record_id
    store[record_id]["updated_at"] = now_iso()
    _save_store(kind, store)
    return deepcopy(store[record_id])


def delete_record(kind: str, record_id: str) -> bool:
    store = _load_store(kind)
    if record_id not in store:
        return False
    del store[record_id]
    _save_store(kind, store)
    return True


def delete_where(kind: str, where: Callable[[dict], bool]) -> int:
    store = _load_store(kind)
    doomed = [rid for rid, record in store.items() if where(record)]
    if not doomed:
        return 0
    for rid in doomed:
        del store[rid]
    _save_store(kind, store)
    return len(doomed)


configure_storage_root(storage_root_from_env())
