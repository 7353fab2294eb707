from __future__ import annotations

ACTION_GUIDE = """\
## Actions
Wrap every action in a tag. Text outside tags is treated as a plain message.

[ASK_TEAM]question for your team members[/ASK_TEAM]
[ASK_USER]question for the user[/ASK_USER]
[ASK_PREV_TEAM]question for the previous team[/ASK_PREV_TEAM]
[UPDATE_SPEC]full specification document[/UPDATE_SPEC]
[UPDATE_DESIGN]full design document[/UPDATE_DESIGN]
[WRITE_FILE:relative/path.ext]file content[/WRITE_FILE]
[PROGRESS]progress note[/PROGRESS]
[BUG_REPORT]bug description[/BUG_REPORT]
[REVIEW]review notes[/REVIEW]
[PHASE_COMPLETE]summary handed to the next team[/PHASE_COMPLETE]
[SEND_NEXT_TEAM]message for the next team[/SEND_NEXT_TEAM]
[ROLLBACK]why the previous team must redo its work[/ROLLBACK]
[REQUEST_FIX]issue the developer team must fix[/REQUEST_FIX]
[TASK_COMPLETE]final summary of the whole project[/TASK_COMPLETE]

Use at most one of ASK_USER, ASK_PREV_TEAM, PHASE_COMPLETE, SEND_NEXT_TEAM,
ROLLBACK, REQUEST_FIX, TASK_COMPLETE per reply: the first one ends your turn.
"""


def leader_prompt(role_id: str, role_name: str, description: str) -> str:
    return (
        f"You are the leader of the {role_name} team ({role_id}).\n"
        f"{description}\n\n"
        "You make the final decision for your team. Consult your members with "
        "[ASK_TEAM] when their opinion helps, then decide.\n\n"
        f"{ACTION_GUIDE}"
    )


def member_prompt(role_id: str, role_name: str, description: str) -> str:
    return (
        f"You are a member of the {role_name} team ({role_id}).\n"
        f"{description}\n\n"
        "Your leader asks for your opinion. Answer concisely with concrete "
        "suggestions, concerns and agreement or disagreement. Do not use action tags."
    )
