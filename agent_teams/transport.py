"""
Outbound event sinks.

The orchestration core reports everything (logs, phase changes, questions,
created files) by emitting named events with a JSON-serializable payload.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol

from agent_teams.utils.run_log import RunLogPaths, append_event, utc_now_iso

PHASE_CHANGE = "phase_change"
PHASE_STATUS = "phase_status"
LOG = "log"
AGENT_STATUS = "agent_status"
STATUS = "status"
USER_QUESTION = "user_question"
USER_INTERVENTION_NEEDED = "user_intervention_needed"
SPEC_UPDATED = "spec_updated"
DESIGN_UPDATED = "design_updated"
FILE_CREATED = "file_created"
CONVERSATION = "conversation"
TASK_COMPLETE = "task_complete"
PROJECT_STOPPED = "project_stopped"
ERROR = "error"


class Transport(Protocol):
    def emit(self, event: str, payload: dict[str, Any]) -> None:
        """Deliver one event. Must not block on user input."""
        raise NotImplementedError


def log_payload(type_: str, message: str, **extra: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {"type": type_, "message": message, "timestamp": utc_now_iso()}
    payload.update(extra)
    return payload


@dataclass
class RecordingTransport:
    """Keeps every event in memory, in emission order."""

    events: list[tuple[str, dict[str, Any]]] = field(default_factory=list)

    def emit(self, event: str, payload: dict[str, Any]) -> None:
        self.events.append((event, payload))

    def of(self, event: str) -> list[dict[str, Any]]:
        return [p for e, p in self.events if e == event]

    def logs(self, type_: str | None = None) -> list[str]:
        return [p["message"] for p in self.of(LOG) if type_ is None or p.get("type") == type_]


class JsonlTransport:
    """Appends every event to the run's JSONL log."""

    def __init__(self, paths: RunLogPaths) -> None:
        self.paths = paths

    def emit(self, event: str, payload: dict[str, Any]) -> None:
        append_event(self.paths, event, payload)


class MultiTransport:
    """Fans events out to several sinks; a failing sink does not starve the rest."""

    def __init__(self, *sinks: Transport) -> None:
        self.sinks = list(sinks)

    def emit(self, event: str, payload: dict[str, Any]) -> None:
        errors: list[Exception] = []
        for sink in self.sinks:
            try:
                sink.emit(event, payload)
            except Exception as e:
                errors.append(e)
        if errors:
            raise errors[0]
