"""Exceptions raised across the orchestration layers."""

from __future__ import annotations


class AgentTeamsError(Exception):
    """Base class for all agent-teams errors."""


class ReasoningEngineError(AgentTeamsError):
    """
    Raised when the reasoning engine behind an agent fails.

    Transport problems (HTTP errors, a non-zero CLI exit) are wrapped into
    this type by the engine backends. Agents re-raise it unmodified.
    """

    def __init__(self, message: str, *, agent_id: str | None = None) -> None:
        super().__init__(message)
        self.agent_id = agent_id


class AgentNotStartedError(AgentTeamsError):
    """Raised when a message is sent to an agent before ``start()``."""


class UnknownPhaseError(AgentTeamsError):
    """Raised when a phase id is not part of the project's phase order."""

    def __init__(self, phase: str) -> None:
        super().__init__(f"Phase {phase!r} is not part of the phase order")
        self.phase = phase
