from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from agent_teams.schema import ProjectState


@dataclass(frozen=True)
class RunLogPaths:
    run_id: str
    jsonl_path: Path


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def make_run_id() -> str:
    return datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%fZ")


def init_run_log(log_dir: Path, run_id: str) -> RunLogPaths:
    log_dir.mkdir(parents=True, exist_ok=True)
    return RunLogPaths(run_id=run_id, jsonl_path=log_dir / f"run_{run_id}.jsonl")


def append_event(paths: RunLogPaths, event: str, payload: dict[str, Any]) -> None:
    record: dict[str, Any] = {
        "ts": utc_now_iso(),
        "run_id": paths.run_id,
        "event": event,
        "payload": payload,
    }
    with paths.jsonl_path.open("a", encoding="utf-8", newline="\n") as f:
        f.write(json.dumps(record, ensure_ascii=False, default=str) + "\n")


def append_snapshot(paths: RunLogPaths, state: ProjectState, *, extra: dict[str, Any] | None = None) -> None:
    """Record the scheduler state (without document bodies) as a ``snapshot`` event."""
    payload: dict[str, Any] = {
        "state": state.model_dump(mode="json", exclude={"spec", "design"}),
        "status": state.status.value,
    }
    if extra:
        payload.update(extra)
    append_event(paths, "snapshot", payload)


def read_events(paths: RunLogPaths) -> list[dict[str, Any]]:
    if not paths.jsonl_path.exists():
        return []
    out: list[dict[str, Any]] = []
    for ln in paths.jsonl_path.read_text(encoding="utf-8", errors="replace").splitlines():
        ln = ln.strip()
        if not ln:
            continue
        try:
            out.append(json.loads(ln))
        except json.JSONDecodeError:
            continue
    return out
