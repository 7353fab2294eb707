from .actions import ACTION_PRIORITY, Action, ActionType, ParsedResponse
from .project_state import PauseReason, ProjectState, ProjectStatus
from .team_result import TERMINAL_ACTIONS, DiscussionEntry, TaskContext, TeamAction, TeamResult

__all__ = [
    "ACTION_PRIORITY",
    "Action",
    "ActionType",
    "DiscussionEntry",
    "ParsedResponse",
    "PauseReason",
    "ProjectState",
    "ProjectStatus",
    "TERMINAL_ACTIONS",
    "TaskContext",
    "TeamAction",
    "TeamResult",
]
