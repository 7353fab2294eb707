from __future__ import annotations

from agent_teams.errors import ReasoningEngineError

from .base import ChatMessage


class MockLLM:
    """Deterministic mock backend: useful to verify control-flow without external LLM."""

    def __init__(self, *, role: str, leader: bool = True) -> None:
        self.role = role
        self.leader = leader

    async def chat(self, messages: list[ChatMessage], *, temperature: float = 0.2) -> str:
        last_user = next((m.content for m in reversed(messages) if m.role == "user"), "")
        if not self.leader:
            return f"[MOCK {self.role} member] No objections. Keep the scope small."

        if self.role == "planner":
            return (
                "[UPDATE_SPEC]\n# Specification (mock)\n\n"
                f"Request:\n{last_user}\n\n"
                "Scope: single-page app, no backend.\n[/UPDATE_SPEC]\n"
                "[PHASE_COMPLETE]Specification ready.[/PHASE_COMPLETE]"
            )
        if self.role == "designer":
            return (
                "[UPDATE_DESIGN]\n# Design (mock)\n\nOne screen, centered layout.\n[/UPDATE_DESIGN]\n"
                "[PHASE_COMPLETE]Design ready.[/PHASE_COMPLETE]"
            )
        if self.role == "developer":
            return (
                "[PROGRESS]Writing the entry point.[/PROGRESS]\n"
                "[WRITE_FILE:index.html]\n<!doctype html>\n<title>mock</title>\n<h1>Hello</h1>\n[/WRITE_FILE]\n"
                "[PHASE_COMPLETE]Implementation ready: index.html[/PHASE_COMPLETE]"
            )
        if self.role == "reviewer":
            return "[REVIEW]No blocking issues.[/REVIEW]\n[PHASE_COMPLETE]Review passed.[/PHASE_COMPLETE]"
        if self.role == "tester":
            return "[PROGRESS]All checks passed.[/PROGRESS]\n[TASK_COMPLETE]Project finished (mock).[/TASK_COMPLETE]"
        return f"[MOCK {self.role}] I received:\n{last_user}"


class ScriptedLLM:
    """
    Returns predefined responses in sequence.

    An ``Exception`` instance in ``responses`` is raised instead of returned.
    Every call's messages are kept in ``calls``.
    """

    def __init__(self, responses: list[str | Exception]) -> None:
        self._responses = list(responses)
        self.calls: list[list[ChatMessage]] = []

    @property
    def remaining(self) -> int:
        return len(self._responses)

    async def chat(self, messages: list[ChatMessage], *, temperature: float = 0.2) -> str:
        self.calls.append(list(messages))
        if not self._responses:
            raise ReasoningEngineError("ScriptedLLM exhausted responses")
        item = self._responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item
