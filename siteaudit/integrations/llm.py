"""
Chat-model client for the audit's written recommendations.

Two wire formats are spoken: OpenAI-style ``/chat/completions`` (OpenAI
itself and local servers such as LM Studio) and the Anthropic ``/messages``
API. Every call asks for a single JSON document and returns it decoded.
"""

import json
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any

import httpx

from siteaudit.config import settings

ANTHROPIC_API_VERSION = "2023-06-01"
CODE_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$")


class LLMProvider(str, Enum):
    LOCAL = "local"
    OPENAI = "openai"
    ANTHROPIC = "anthropic"


@dataclass(frozen=True)
class LLMConfig:
    provider: LLMProvider
    base_url: str
    api_key: str
    model: str
    temperature: float = 0.3
    max_tokens: int = 2048
    timeout: float = 60.0

    @classmethod
    def from_settings(cls) -> "LLMConfig":
        return cls(
            provider=LLMProvider(settings.LLM_PROVIDER),
            base_url=settings.LLM_BASE_URL.rstrip("/"),
            api_key=settings.LLM_API_KEY,
            model=settings.LLM_MODEL,
            timeout=settings.LLM_TIMEOUT,
        )


def decode_json_reply(text: str) -> Any:
    """Decode a model reply, tolerating a markdown code fence around it."""
    return json.loads(CODE_FENCE_RE.sub("", text.strip()))


class LLMClient:
    """Asks a chat model for one JSON answer per call."""

    def __init__(
        self,
        config: LLMConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config or LLMConfig.from_settings()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def configured(self) -> bool:
        return bool(self.config.api_key) or self.config.provider == LLMProvider.LOCAL

    def _headers(self) -> dict[str, str]:
        if self.config.provider == LLMProvider.ANTHROPIC:
            return {"x-api-key": self.config.api_key, "anthropic-version": ANTHROPIC_API_VERSION}
        if self.config.api_key:
            return {"Authorization": f"Bearer {self.config.api_key}"}
        return {}

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self.config.timeout,
                headers=self._headers(),
                transport=self._transport,
            )
        return self._client

    def _build_request(self, system_prompt: str, prompt: str) -> tuple[str, dict[str, Any]]:
        payload: dict[str, Any] = {
            "model": self.config.model,
            "max_tokens": self.config.max_tokens,
            "temperature": self.config.temperature,
        }
        if self.config.provider == LLMProvider.ANTHROPIC:
            # No JSON mode here; the prompt alone asks for JSON.
            payload.update(system=system_prompt, messages=[{"role": "user", "content": prompt}])
            return f"{self.config.base_url}/messages", payload

        payload.update(
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": prompt},
            ],
            response_format={"type": "json_object"},
        )
        return f"{self.config.base_url}/chat/completions", payload

    def _reply_text(self, data: dict[str, Any]) -> str:
        if self.config.provider == LLMProvider.ANTHROPIC:
            return "".join(block.get("text", "") for block in data["content"] if block.get("type") == "text")
        return data["choices"][0]["message"]["content"]

    async def complete_json(self, system_prompt: str, prompt: str) -> Any:
        """One chat turn; returns the decoded JSON reply.

        Raises ``httpx.HTTPError`` for transport and status failures,
        ``ValueError`` for a reply that is not JSON and ``KeyError`` /
        ``IndexError`` / ``TypeError`` for a response body of the wrong shape.
        """
        url, payload = self._build_request(system_prompt, prompt)
        client = await self._get_client()
        response = await client.post(url, json=payload)
        response.raise_for_status()
        return decode_json_reply(self._reply_text(response.json()))

    async def close(self):
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
