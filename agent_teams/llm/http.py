from __future__ import annotations

from typing import Any

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from agent_teams.errors import ReasoningEngineError

from .base import ChatMessage


class HttpChatBackend:
    """
    Shared plumbing for chat backends reached over HTTP.

    Subclasses describe one provider: where to POST, what to send and how to
    read the reply. Connection-level failures are retried with backoff; any
    remaining ``httpx.HTTPError`` surfaces as ``ReasoningEngineError``.
    """

    provider = "HTTP"

    def __init__(self, *, base_url: str, timeout_s: float = 300.0) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s

    def endpoint(self) -> str:
        raise NotImplementedError

    def headers(self) -> dict[str, str]:
        return {}

    def build_payload(self, messages: list[ChatMessage], temperature: float) -> dict[str, Any]:
        raise NotImplementedError

    def read_reply(self, data: dict[str, Any]) -> str:
        raise NotImplementedError

    async def chat(self, messages: list[ChatMessage], *, temperature: float = 0.2) -> str:
        payload = self.build_payload(messages, temperature)
        try:
            data = await self._post(payload)
        except httpx.HTTPError as e:
            raise ReasoningEngineError(f"{self.provider} request failed: {e}") from e
        if not isinstance(data, dict):
            raise ReasoningEngineError(f"{self.provider} returned an unexpected body: {type(data).__name__}")
        return self.read_reply(data)

    @retry(
        reraise=True,
        stop=stop_after_attempt(4),
        wait=wait_exponential(multiplier=0.6, min=0.6, max=6),
        retry=retry_if_exception_type(httpx.TransportError),
    )
    async def _post(self, payload: dict[str, Any]) -> Any:
        async with httpx.AsyncClient(timeout=self.timeout_s) as client:
            r = await client.post(f"{self.base_url}{self.endpoint()}", json=payload, headers=self.headers())
            r.raise_for_status()
            return r.json()


def role_payload(messages: list[ChatMessage]) -> list[dict[str, str]]:
    return [{"role": m.role, "content": m.content} for m in messages]
