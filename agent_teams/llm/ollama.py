from __future__ import annotations

from typing import Any

from .base import ChatMessage
from .http import HttpChatBackend, role_payload


class OllamaLLM(HttpChatBackend):
    provider = "Ollama"

    def __init__(self, *, base_url: str, model: str, timeout_s: float = 300.0) -> None:
        super().__init__(base_url=base_url, timeout_s=timeout_s)
        self.model = model

    def endpoint(self) -> str:
        return "/api/chat"

    def build_payload(self, messages: list[ChatMessage], temperature: float) -> dict[str, Any]:
        return {
            "model": self.model,
            "stream": False,
            "messages": role_payload(messages),
            "options": {"temperature": temperature},
        }

    def read_reply(self, data: dict[str, Any]) -> str:
        # {"message": {"role": "assistant", "content": "..."}, "done": true, ...}
        return (data.get("message") or {}).get("content", "") or ""
