"""Shared pytest fixtures for agent-teams tests."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from agent_teams.chains import PhaseScheduler
from agent_teams.config import Settings
from agent_teams.llm import ChatMessage, ChatSession, ScriptedLLM
from agent_teams.transport import RecordingTransport
from agent_teams.utils.files import Workspace


class ScriptBook:
    """
    Engine factory handing out scripted LLMs.

    ``scripts`` maps a role to one response list per agent, leader first.
    Agents are started leader first, so the n-th engine built for a role
    belongs to the n-th agent of that team.
    """

    def __init__(self, scripts: dict[str, list[list]], *, history_limit: int = 10) -> None:
        self.llms = {role: [ScriptedLLM(r) for r in per_agent] for role, per_agent in scripts.items()}
        self.history_limit = history_limit
        self._handed_out: dict[str, int] = {}

    def __call__(self, role: str, is_leader: bool) -> ChatSession:
        i = self._handed_out.get(role, 0)
        self._handed_out[role] = i + 1
        llms = self.llms.setdefault(role, [])
        while len(llms) <= i:
            llms.append(ScriptedLLM([]))
        return ChatSession(llms[i], history_limit=self.history_limit)

    def leader(self, role: str) -> ScriptedLLM:
        return self.llms[role][0]

    def member(self, role: str, n: int = 1) -> ScriptedLLM:
        return self.llms[role][n]

    def sent(self, role: str, agent: int = 0) -> list[str]:
        """Last user message of every call made by one agent."""
        return [last_user(call) for call in self.llms[role][agent].calls]


def last_user(messages: list[ChatMessage]) -> str:
    return next(m.content for m in reversed(messages) if m.role == "user")


class FakeSideEffects:
    """Records team side effects instead of touching disk."""

    def __init__(self) -> None:
        self.calls: list[tuple] = []

    async def update_spec(self, content: str) -> None:
        self.calls.append(("spec", content))

    async def update_design(self, content: str) -> None:
        self.calls.append(("design", content))

    async def write_file(self, rel_path: str, content: str) -> None:
        self.calls.append(("file", rel_path, content))


class GatedLLM:
    """LLM whose reply (or ``error``) is held until ``release`` is set."""

    def __init__(self, reply: str = "", *, error: Exception | None = None) -> None:
        self.reply = reply
        self.error = error
        self.called = asyncio.Event()
        self.release = asyncio.Event()

    async def chat(self, messages: list[ChatMessage], *, temperature: float = 0.2) -> str:
        self.called.set()
        await self.release.wait()
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def workspace(tmp_path: Path) -> Workspace:
    ws = Workspace(tmp_path / "project")
    ws.prepare()
    return ws


@pytest.fixture
def side_effects() -> FakeSideEffects:
    return FakeSideEffects()


@pytest.fixture
def make_scheduler(workspace: Workspace, transport: RecordingTransport):
    """Build an initialized scheduler over scripted teams."""

    async def build(
        team_config: dict[str, int],
        scripts: dict[str, list[list]],
        **kwargs,
    ) -> tuple[PhaseScheduler, ScriptBook]:
        book = ScriptBook(scripts)
        scheduler = PhaseScheduler(
            team_config,
            engine_factory=book,
            workspace=workspace,
            transport=transport,
            **kwargs,
        )
        await scheduler.initialize()
        return scheduler, book

    return build


def make_settings(**overrides) -> Settings:
    base = dict(
        llm_backend="mock",
        ollama_base_url="http://localhost:11434",
        ollama_model="llama3.1:latest",
        anthropic_api_key=None,
        anthropic_model="claude-3-5-sonnet-latest",
        openai_api_key=None,
        openai_model="gpt-4o-mini",
        openai_base_url="https://api.openai.com/v1",
        claude_command="claude",
        team_config={"planner": 1, "developer": 1},
    )
    base.update(overrides)
    return Settings(**base)
