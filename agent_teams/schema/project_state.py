from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class ProjectStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETED = "completed"
    STOPPED = "stopped"


class PauseReason(str, Enum):
    QUESTION = "question"  # waiting for a user answer
    INTERVENTION = "intervention"  # waiting for continue/retry/skip/abort


class ProjectState(BaseModel):
    """Per-project scheduler state. Only PhaseScheduler mutates it."""

    phase_order: tuple[str, ...] = ()
    current_phase_index: int = 0
    retry_count: dict[str, int] = Field(default_factory=dict)

    is_running: bool = False
    is_paused: bool = False
    pause_reason: PauseReason | None = None
    completed: bool = False
    stopped: bool = False

    # Accumulated artifacts
    spec: str = ""
    design: str = ""
    created_files: list[str] = Field(default_factory=list)  # insertion order, no duplicates

    # Last phase-level error (collaborator failure), if any
    last_error: str | None = None

    @property
    def status(self) -> ProjectStatus:
        if self.completed:
            return ProjectStatus.COMPLETED
        if self.stopped:
            return ProjectStatus.STOPPED
        if self.is_paused:
            return ProjectStatus.PAUSED
        if self.is_running:
            return ProjectStatus.RUNNING
        return ProjectStatus.IDLE

    @property
    def current_phase(self) -> str | None:
        if 0 <= self.current_phase_index < len(self.phase_order):
            return self.phase_order[self.current_phase_index]
        return None

    def retries(self, team: str) -> int:
        return self.retry_count.get(team, 0)

    def add_created_file(self, path: str) -> bool:
        """Record a created file; returns False if it was already recorded."""
        if path in self.created_files:
            return False
        self.created_files.append(path)
        return True
