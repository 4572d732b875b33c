from __future__ import annotations

import json
import logging
import re
from typing import Any, Optional, Protocol

import anthropic
import httpx

from termify.documents.errors import ServiceUnavailable
from termify.settings.config import LLMProvider, LLMSettings

logger = logging.getLogger(__name__)

MAX_TOKENS = 2048


class UpstreamError(Exception):
    """The chat endpoint could not be reached or answered with a failure status."""

    def __init__(self, message: str, status: int = 0, body: str = "") -> None:
        super().__init__(message)
        self.status = status
        self.body = body


class UpstreamResponseError(Exception):
    """The chat endpoint answered 2xx but the envelope had no usable reply text."""


class ChatClient(Protocol):
    model: str

    async def complete(self, system: str, user: str, temperature: float) -> str:
        ...


# ---------------------------------------------------------------------------
# Mock implementation
# ---------------------------------------------------------------------------

MOCK_ANALYSIS_REPLY = """\
```json
{
  "risk": "medium",
  "summaryEn": "This clause sets standard terms that renew automatically unless you cancel in time.",
  "summaryHi": "यह खंड मानक शर्तें तय करता है जो समय पर रद्द न करने पर स्वतः नवीनीकृत होती हैं।",
  "rationale": "Standard contractual language with advance notice; review before accepting."
}
```"""

MOCK_MAX_CLAUSES = 7


class MockChatClient:
    """Deterministic offline replies for tests and local runs."""

    model = "mock"

    async def complete(self, system: str, user: str, temperature: float) -> str:
        if user.startswith("Segment"):
            return self._segment_reply(user)
        return MOCK_ANALYSIS_REPLY

    @staticmethod
    def _segment_reply(user: str) -> str:
        document = user.split("\n\n", 1)[-1]
        paragraphs = [p.strip() for p in re.split(r"\n\s*\n", document) if p.strip()]
        if len(paragraphs) > MOCK_MAX_CLAUSES:
            head = paragraphs[: MOCK_MAX_CLAUSES - 1]
            paragraphs = head + ["\n\n".join(paragraphs[MOCK_MAX_CLAUSES - 1 :])]
        clauses = [
            {"title": f"Clause {idx}", "originalText": text, "category": "Legal"}
            for idx, text in enumerate(paragraphs, start=1)
        ]
        return "```json\n" + json.dumps(clauses, ensure_ascii=False, indent=2) + "\n```"


# ---------------------------------------------------------------------------
# OpenAI-style chat completions gateway
# ---------------------------------------------------------------------------


class GatewayChatClient:
    """POST {base_url}/chat/completions with a bearer token."""

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.model = model
        self._api_key = api_key
        self._url = f"{base_url.rstrip('/')}/chat/completions"
        self._timeout = timeout
        self._transport = transport

    async def complete(self, system: str, user: str, temperature: float) -> str:
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
            "temperature": temperature,
        }
        headers = {"Authorization": f"Bearer {self._api_key}"}
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                resp = await client.post(self._url, json=payload, headers=headers)
        except httpx.HTTPError as exc:
            raise UpstreamError(f"{type(exc).__name__}: {exc}") from exc

        if resp.is_error:
            raise UpstreamError(
                f"chat completion returned {resp.status_code}",
                status=resp.status_code,
                body=resp.text,
            )
        return _gateway_reply_text(resp)


def _gateway_reply_text(resp: httpx.Response) -> str:
    try:
        data: Any = resp.json()
        content = data["choices"][0]["message"]["content"]
    except (ValueError, KeyError, IndexError, TypeError) as exc:
        raise UpstreamResponseError(f"malformed chat completion: {exc!r}") from exc
    if not isinstance(content, str):
        raise UpstreamResponseError("chat completion content is not text")
    return content


# ---------------------------------------------------------------------------
# Anthropic Messages API
# ---------------------------------------------------------------------------


class AnthropicChatClient:
    def __init__(self, api_key: str, model: str, timeout: float = 60.0) -> None:
        self.model = model
        self._client = anthropic.AsyncAnthropic(api_key=api_key, timeout=timeout)

    async def complete(self, system: str, user: str, temperature: float) -> str:
        try:
            response = await self._client.messages.create(
                model=self.model,
                max_tokens=MAX_TOKENS,
                temperature=temperature,
                system=system,
                messages=[{"role": "user", "content": user}],
            )
        except anthropic.APIStatusError as exc:
            raise UpstreamError(
                f"Anthropic API returned {exc.status_code}",
                status=exc.status_code,
                body=exc.response.text,
            ) from exc
        except anthropic.APIError as exc:
            raise UpstreamError(f"{type(exc).__name__}: {exc}") from exc

        for block in response.content:
            text = getattr(block, "text", None)
            if isinstance(text, str):
                return text
        raise UpstreamResponseError("Anthropic response contained no text block")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def build_chat_client(settings: LLMSettings) -> ChatClient:
    """Construct the client for the configured provider."""
    if settings.provider == LLMProvider.MOCK:
        return MockChatClient()

    if not settings.api_key:
        logger.error("No API key configured for LLM provider %s", settings.provider)
        raise ServiceUnavailable()

    model = settings.resolve_model()
    if settings.provider == LLMProvider.ANTHROPIC:
        return AnthropicChatClient(settings.api_key, model, timeout=settings.timeout_seconds)
    return GatewayChatClient(
        settings.api_key, model, settings.base_url, timeout=settings.timeout_seconds
    )
