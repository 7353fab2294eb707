from __future__ import annotations

from typing import Any

from .base import ChatMessage
from .http import HttpChatBackend, role_payload


class OpenAICompatLLM(HttpChatBackend):
    """
    ChatCompletions client for OpenAI or any gateway speaking the same API.
    Point ``base_url`` at the gateway.
    """

    provider = "OpenAI-compatible"

    def __init__(
        self,
        *,
        api_key: str,
        model: str,
        base_url: str = "https://api.openai.com/v1",
        timeout_s: float = 300.0,
    ) -> None:
        super().__init__(base_url=base_url, timeout_s=timeout_s)
        self.api_key = api_key
        self.model = model

    def endpoint(self) -> str:
        return "/chat/completions"

    def headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}"}

    def build_payload(self, messages: list[ChatMessage], temperature: float) -> dict[str, Any]:
        return {"model": self.model, "messages": role_payload(messages), "temperature": temperature}

    def read_reply(self, data: dict[str, Any]) -> str:
        choices = data.get("choices") or []
        if not choices:
            return ""
        return ((choices[0] or {}).get("message") or {}).get("content") or ""
