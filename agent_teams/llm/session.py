from __future__ import annotations

from .base import ChatMessage, LLMClient


class ChatSession:
    """
    Reasoning engine backed by a stateless LLM client.

    Keeps a rolling window of the last ``history_limit`` user/assistant
    messages and prepends the system prompt to every call. Client errors
    propagate unchanged.
    """

    def __init__(self, llm: LLMClient, *, history_limit: int = 10, temperature: float = 0.2) -> None:
        self.llm = llm
        self.history_limit = history_limit
        self.temperature = temperature
        self.system_prompt: str | None = None
        self.history: list[ChatMessage] = []
        self.is_ready = False

    async def start(self, system_prompt: str) -> None:
        self.system_prompt = system_prompt
        self.history = []
        self.is_ready = True

    async def send(self, message: str) -> str:
        self.history.append(ChatMessage("user", message))
        self._trim()

        messages: list[ChatMessage] = []
        if self.system_prompt:
            messages.append(ChatMessage("system", self.system_prompt))
        messages.extend(self.history)

        out = (await self.llm.chat(messages, temperature=self.temperature)).strip()
        if out:
            self.history.append(ChatMessage("assistant", out))
            self._trim()
        return out

    def _trim(self) -> None:
        window = self.history[-self.history_limit :]
        # The window always opens with a user turn.
        while window and window[0].role != "user":
            window = window[1:]
        self.history = window

    async def stop(self) -> None:
        self.is_ready = False
