from __future__ import annotations

from dataclasses import dataclass

from agent_teams.agents.prompts import leader_prompt, member_prompt

MAX_AGENTS_PER_TEAM = 3  # leader + up to two members
DEFAULT_FIX_PHASE = "developer"


@dataclass(frozen=True)
class Role:
    id: str
    name: str
    phase: int
    description: str
    permission_mode: str  # used by the claude CLI backend

    @property
    def leader_prompt(self) -> str:
        return leader_prompt(self.id, self.name, self.description)

    @property
    def member_prompt(self) -> str:
        return member_prompt(self.id, self.name, self.description)


ROLES: dict[str, Role] = {
    r.id: r
    for r in (
        Role("planner", "Planner", 1, "Turns the user's requirement into a clear specification.", "acceptEdits"),
        Role("designer", "Designer", 2, "Designs the UI/UX and writes the design document.", "acceptEdits"),
        Role("developer", "Developer", 3, "Implements the specification as working source files.", "bypassPermissions"),
        Role("reviewer", "Reviewer", 4, "Reviews the code for defects and spec conformance.", "acceptEdits"),
        Role("tester", "Tester", 5, "Tests the result and reports bugs or completion.", "bypassPermissions"),
    )
}


def get_role(role_id: str) -> Role:
    try:
        return ROLES[role_id]
    except KeyError:
        raise KeyError(f"Unknown role: {role_id!r}") from None


def get_phase_order() -> list[str]:
    return [r.id for r in sorted(ROLES.values(), key=lambda r: r.phase)]
