from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ActionType(str, Enum):
    ASK_TEAM = "ASK_TEAM"
    ASK_USER = "ASK_USER"
    ASK_PREV_TEAM = "ASK_PREV_TEAM"
    UPDATE_SPEC = "UPDATE_SPEC"
    UPDATE_DESIGN = "UPDATE_DESIGN"
    PHASE_COMPLETE = "PHASE_COMPLETE"
    SEND_NEXT_TEAM = "SEND_NEXT_TEAM"
    ROLLBACK = "ROLLBACK"
    TASK_COMPLETE = "TASK_COMPLETE"
    PROGRESS = "PROGRESS"
    BUG_REPORT = "BUG_REPORT"
    REVIEW = "REVIEW"
    REQUEST_FIX = "REQUEST_FIX"
    WRITE_FILE = "WRITE_FILE"
    # Used by stand-alone (non-team) agents only.
    ASK_PLANNER = "ASK_PLANNER"
    SEND_TO_DEVELOPER = "SEND_TO_DEVELOPER"
    REPLY_TO_DEVELOPER = "REPLY_TO_DEVELOPER"


# Extraction order after WRITE_FILE. Callers stop at the first terminal action,
# so this order decides which of two terminal tags wins.
ACTION_PRIORITY: tuple[ActionType, ...] = (
    ActionType.ASK_TEAM,
    ActionType.ASK_USER,
    ActionType.ASK_PREV_TEAM,
    ActionType.UPDATE_SPEC,
    ActionType.UPDATE_DESIGN,
    ActionType.PHASE_COMPLETE,
    ActionType.SEND_NEXT_TEAM,
    ActionType.ROLLBACK,
    ActionType.TASK_COMPLETE,
    ActionType.PROGRESS,
    ActionType.BUG_REPORT,
    ActionType.REVIEW,
    ActionType.REQUEST_FIX,
    ActionType.ASK_PLANNER,
    ActionType.SEND_TO_DEVELOPER,
    ActionType.REPLY_TO_DEVELOPER,
)


class Action(BaseModel):
    """One tag occurrence parsed from a reasoning-engine response."""

    model_config = ConfigDict(frozen=True)

    type: ActionType
    content: str = ""
    path: str | None = None  # only for WRITE_FILE


class ParsedResponse(BaseModel):
    message: str = ""
    actions: list[Action] = Field(default_factory=list)
