from __future__ import annotations

from pathlib import Path
from typing import Callable

from agent_teams.config import Settings
from agent_teams.roles import get_role

from .anthropic import AnthropicLLM
from .base import LLMClient, ReasoningEngine
from .claude_cli import ClaudeCliLLM
from .mock import MockLLM
from .ollama import OllamaLLM
from .openai_compat import OpenAICompatLLM
from .session import ChatSession

EngineFactory = Callable[[str, bool], ReasoningEngine]  # (role_id, is_leader) -> engine

BACKENDS = ("mock", "ollama", "anthropic", "openai", "claude-cli")

# Tools the developer-side roles may use through the CLI backend.
_CLI_TOOLS = {"developer": "Bash,Read,Write,Edit,Glob,Grep", "tester": "Bash,Read,Glob,Grep"}


def build_llm(settings: Settings, *, role: str = "planner", leader: bool = True, workdir: Path | None = None) -> LLMClient:
    backend = settings.llm_backend
    if backend == "mock":
        return MockLLM(role=role, leader=leader)
    if backend == "ollama":
        return OllamaLLM(base_url=settings.ollama_base_url, model=settings.ollama_model)
    if backend == "anthropic":
        if not settings.anthropic_api_key:
            raise RuntimeError("ANTHROPIC_API_KEY is not set but AT_LLM_BACKEND=anthropic")
        return AnthropicLLM(api_key=settings.anthropic_api_key, model=settings.anthropic_model)
    if backend == "openai":
        if not settings.openai_api_key:
            raise RuntimeError("OPENAI_API_KEY is not set but AT_LLM_BACKEND=openai")
        return OpenAICompatLLM(
            api_key=settings.openai_api_key, model=settings.openai_model, base_url=settings.openai_base_url
        )
    if backend == "claude-cli":
        return ClaudeCliLLM(
            command=settings.claude_command,
            workdir=workdir,
            permission_mode=get_role(role).permission_mode,
            allowed_tools=_CLI_TOOLS.get(role),
        )
    raise ValueError(f"Unknown AT_LLM_BACKEND={backend!r}, expected one of: {'|'.join(BACKENDS)}")


def build_engine_factory(settings: Settings, *, workdir: Path | None = None) -> EngineFactory:
    """
    Build the per-agent reasoning engine factory.

    Every agent gets its own ChatSession (its own history window). HTTP
    clients are stateless and shared; mock and CLI clients depend on the role.
    """
    shared: LLMClient | None = None
    if settings.llm_backend in ("ollama", "anthropic", "openai"):
        shared = build_llm(settings)

    def factory(role: str, is_leader: bool) -> ReasoningEngine:
        llm = shared or build_llm(settings, role=role, leader=is_leader, workdir=workdir)
        return ChatSession(llm, history_limit=settings.history_limit)

    return factory
