"""
GEMINI SERVICE MODULE
=====================

Talks to the hosted Gemini API on behalf of the two gateways. Holds no state
between requests: a GeminiService is built per request from the current
environment, used once, and dropped.

CHAT (streaming):
  stream_chat(history, message) maps the caller's roles to Gemini's vocabulary
  (assistant -> model, everything else -> user), appends the new user turn,
  adds the companion persona as systemInstruction and opens
  models/{model}:streamGenerateContent?alt=sse. On success it returns an async
  iterator over the upstream body. Transfer encoding (gzip) is undone;
  the SSE frames themselves are passed on untouched.

FORMAT (single call):
  format_diary(user_message, ai_response) fills FORMAT_DIARY_PROMPT, calls
  models/{model}:generateContent and returns candidates[0].content.parts[0].text
  ("" if the field is missing).

ERRORS:
  GatewayConfigError  - GEMINI_API_KEY missing (raised before any network call).
  UpstreamModelError  - non-success status from Gemini (status + body kept for logs).
"""

import logging
from typing import AsyncIterator, List, Optional

import httpx
from langchain_core.prompts import PromptTemplate

from app.models import ChatMessage
from app.utils.sse import extract_token
from config import (
    CHAT_GENERATION_CONFIG,
    DIARY_PERSONA_PROMPT,
    FORMAT_DIARY_PROMPT,
    FORMAT_GENERATION_CONFIG,
    GEMINI_API_BASE,
    GEMINI_MODEL,
    UPSTREAM_TIMEOUT,
    get_gemini_api_key,
)

logger = logging.getLogger("DearDiary")

_FORMAT_TEMPLATE = PromptTemplate.from_template(FORMAT_DIARY_PROMPT)


class GatewayConfigError(RuntimeError):
    """A required secret is not configured."""


class UpstreamModelError(RuntimeError):
    """Gemini answered with a non-success status."""

    def __init__(self, status_code: int, body: str):
        super().__init__(f"Gemini API error: {status_code}")
        self.status_code = status_code
        self.body = body

# ==============================================================================
# REQUEST SHAPING
# ==============================================================================

def to_gemini_contents(history: List[ChatMessage], message: str) -> List[dict]:
    """Conversation history plus the new message in Gemini's contents format."""
    contents = [
        {
            "role": "model" if msg.role == "assistant" else "user",
            "parts": [{"text": msg.content}],
        }
        for msg in history
    ]
    contents.append({"role": "user", "parts": [{"text": message}]})
    return contents


def build_chat_payload(history: List[ChatMessage], message: str) -> dict:
    return {
        "contents": to_gemini_contents(history, message),
        "systemInstruction": {"parts": [{"text": DIARY_PERSONA_PROMPT}]},
        "generationConfig": dict(CHAT_GENERATION_CONFIG),
    }


def build_format_payload(user_message: str, ai_response: str) -> dict:
    prompt = _FORMAT_TEMPLATE.format(user_message=user_message, ai_response=ai_response)
    return {
        "contents": [{"role": "user", "parts": [{"text": prompt}]}],
        "generationConfig": dict(FORMAT_GENERATION_CONFIG),
    }

# ==============================================================================
# GEMINI SERVICE CLASS
# ==============================================================================

class GeminiService:
    """
    One Gemini API key + model. `transport` lets the app (or tests) swap the
    HTTP transport; None means a real network connection.
    """

    def __init__(
        self,
        api_key: str,
        model: str = GEMINI_MODEL,
        api_base: str = GEMINI_API_BASE,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.api_base = api_base
        self.transport = transport

    @classmethod
    def from_env(cls, transport: Optional[httpx.AsyncBaseTransport] = None) -> "GeminiService":
        """Build a service from GEMINI_API_KEY; raise GatewayConfigError if it is not set."""
        api_key = get_gemini_api_key()
        if not api_key:
            raise GatewayConfigError("GEMINI_API_KEY is not configured")
        return cls(api_key, transport=transport)

    def _url(self, method: str) -> str:
        return f"{self.api_base}/models/{self.model}:{method}"

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self.transport, timeout=UPSTREAM_TIMEOUT)

    async def stream_chat(self, history: List[ChatMessage], message: str) -> AsyncIterator[bytes]:
        """
        Open the streaming request and check its status. Returns an async iterator
        over the decoded body that closes the upstream connection when exhausted.
        Raises UpstreamModelError before any byte is relayed if Gemini refuses.
        """
        client = self._client()
        request = client.build_request(
            "POST",
            self._url("streamGenerateContent"),
            params={"key": self.api_key, "alt": "sse"},
            json=build_chat_payload(history, message),
        )
        try:
            response = await client.send(request, stream=True)
        except BaseException:
            await client.aclose()
            raise

        if not response.is_success:
            body = (await response.aread()).decode("utf-8", errors="replace")
            await response.aclose()
            await client.aclose()
            logger.error("Gemini API error: %s %s", response.status_code, body[:500])
            raise UpstreamModelError(response.status_code, body)

        return self._relay(response, client)

    @staticmethod
    async def _relay(response: httpx.Response, client: httpx.AsyncClient) -> AsyncIterator[bytes]:
        try:
            async for chunk in response.aiter_bytes():
                yield chunk
        finally:
            await response.aclose()
            await client.aclose()

    async def format_diary(self, user_message: str, ai_response: str) -> str:
        """Condense one exchange into a short diary paragraph ("" if Gemini returns no text)."""
        async with self._client() as client:
            response = await client.post(
                self._url("generateContent"),
                params={"key": self.api_key},
                json=build_format_payload(user_message, ai_response),
            )
        if not response.is_success:
            logger.error("Gemini API error: %s %s", response.status_code, response.text[:500])
            raise UpstreamModelError(response.status_code, response.text)

        return extract_token(response.json()) or ""
