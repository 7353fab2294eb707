from __future__ import annotations

from typing import Any

from .base import ChatMessage
from .http import HttpChatBackend, role_payload

ANTHROPIC_VERSION = "2023-06-01"


class AnthropicLLM(HttpChatBackend):
    """Anthropic Messages API over raw HTTP."""

    provider = "Anthropic"

    def __init__(
        self,
        *,
        api_key: str,
        model: str,
        base_url: str = "https://api.anthropic.com/v1",
        timeout_s: float = 300.0,
        max_tokens: int = 8192,
    ) -> None:
        super().__init__(base_url=base_url, timeout_s=timeout_s)
        self.api_key = api_key
        self.model = model
        self.max_tokens = max_tokens

    def endpoint(self) -> str:
        return "/messages"

    def headers(self) -> dict[str, str]:
        return {"x-api-key": self.api_key, "anthropic-version": ANTHROPIC_VERSION}

    def build_payload(self, messages: list[ChatMessage], temperature: float) -> dict[str, Any]:
        # The system prompt travels separately; the turn list holds user/assistant only.
        system = "\n".join(m.content for m in messages if m.role == "system").strip()
        payload: dict[str, Any] = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "temperature": temperature,
            "messages": role_payload([m for m in messages if m.role != "system"]),
        }
        if system:
            payload["system"] = system
        return payload

    def read_reply(self, data: dict[str, Any]) -> str:
        blocks = data.get("content") or []
        return "\n".join(b["text"] for b in blocks if isinstance(b, dict) and b.get("type") == "text" and b.get("text"))
