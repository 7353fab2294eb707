from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class ChatMessage:
    role: str  # "system" | "user" | "assistant"
    content: str


class LLMClient(Protocol):
    async def chat(self, messages: list[ChatMessage], *, temperature: float = 0.2) -> str:
        """Return assistant text output."""
        raise NotImplementedError


class ReasoningEngine(Protocol):
    """What an Agent talks to: a conversation with hidden memory."""

    async def start(self, system_prompt: str) -> None:
        raise NotImplementedError

    async def send(self, message: str) -> str:
        raise NotImplementedError

    async def stop(self) -> None:
        raise NotImplementedError
