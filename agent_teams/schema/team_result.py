from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from .actions import ActionType


class TeamAction(str, Enum):
    ASK_USER = "ask_user"
    ASK_PREV_TEAM = "ask_prev_team"
    PHASE_COMPLETE = "phase_complete"
    SEND_NEXT_TEAM = "send_next_team"
    ROLLBACK = "rollback"
    REQUEST_FIX = "request_fix"
    TASK_COMPLETE = "task_complete"
    CONTINUE = "continue"


# Tags that end a team turn, and the result each one produces.
TERMINAL_ACTIONS: dict[ActionType, TeamAction] = {
    ActionType.ASK_USER: TeamAction.ASK_USER,
    ActionType.ASK_PREV_TEAM: TeamAction.ASK_PREV_TEAM,
    ActionType.PHASE_COMPLETE: TeamAction.PHASE_COMPLETE,
    ActionType.SEND_NEXT_TEAM: TeamAction.SEND_NEXT_TEAM,
    ActionType.ROLLBACK: TeamAction.ROLLBACK,
    ActionType.TASK_COMPLETE: TeamAction.TASK_COMPLETE,
    ActionType.REQUEST_FIX: TeamAction.REQUEST_FIX,
}


class TeamResult(BaseModel):
    """
    The single outcome of one team turn.

    ``content`` carries the tag payload: the question for ``ask_user`` /
    ``ask_prev_team``, the summary for ``phase_complete`` / ``task_complete``,
    the forwarded message for ``send_next_team``, the reason for ``rollback``
    and the issue for ``request_fix``. ``response`` is the raw leader reply
    that produced the result.
    """

    model_config = ConfigDict(frozen=True)

    action: TeamAction
    team: str
    content: str = ""
    response: str = ""

    @property
    def answer_text(self) -> str:
        """Text to relay when this result answers another team's question."""
        return self.content or self.response


class TaskContext(BaseModel):
    """Context merged into the leader message when a team receives a task."""

    from_team: str | None = None
    spec: str = ""
    design: str = ""
    files: list[str] = Field(default_factory=list)


class DiscussionEntry(BaseModel):
    speaker: str
    text: str
