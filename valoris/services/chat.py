from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from valoris.config.loader import ChatConfig
from valoris.errors import ApiError, NetworkError, ParsingError, ValidationError, truncate_body
from valoris.models.conversation import ChatContext, ChatMessage

"""Chat assistant client.

POSTs ``{message, chatContext, conversationHistory}`` to the configured chat
endpoint and expects ``{success, message}`` back. Any failure (no endpoint,
transport error, timeout, non-2xx, malformed body) is answered with a local
keyword-matched reply instead of an error.
"""

__all__ = [
    "ChatReply",
    "ChatService",
    "fallback_reply",
]

logger = logging.getLogger(__name__)

GENERIC_FALLBACK = (
    "I'm having trouble accessing the analysis right now. Could you try rephrasing your question?"
)


@dataclass(frozen=True)
class ChatReply:
    success: bool
    message: str | None = None
    error: str | None = None
    fallback: bool = False


def fallback_reply(message: str, context: ChatContext | None = None) -> str:
    """Local answer used whenever the chat endpoint cannot be used."""
    text = message.lower()
    if "savings" in text:
        if context is not None and context.total_savings > 0:
            return (
                f"Your loaded analysis shows roughly €{context.total_savings:,.0f} in potential savings "
                f"across {context.total_vendors} vendors. Which vendor would you like to start with?"
            )
        return (
            "I can help you identify savings opportunities once the analysis data is loaded. "
            "Try uploading your procurement file first."
        )
    if "vendor" in text:
        if context is not None and context.top_vendors:
            top = context.top_vendors[0]
            return (
                f"Your largest vendor is {top.name} at €{top.spend:,.0f} ({top.category}). "
                "Which vendor or category are you most concerned about?"
            )
        return (
            "I'd be happy to discuss vendor optimization strategies. "
            "Which specific vendor or category are you most concerned about?"
        )
    if "alternative" in text:
        return (
            "I can suggest vendor alternatives based on your current analysis data. "
            "Which vendor would you like me to find alternatives for?"
        )
    return GENERIC_FALLBACK


class ChatService:
    def __init__(self, config: ChatConfig, http_client: httpx.AsyncClient | None = None) -> None:
        self.config = config
        self._http = http_client
        self._timeout = httpx.Timeout(config.timeout_seconds)

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.config.api_key:
            headers["API-KEY"] = self.config.api_key
        return headers

    def _request_body(self, message: str, context: ChatContext, history: list[ChatMessage]) -> dict[str, Any]:
        recent = history[-self.config.history_limit:] if self.config.history_limit > 0 else []
        return {
            "message": message,
            "chatContext": context.to_dict(),
            "conversationHistory": [{"role": m.role, "content": m.content} for m in recent],
        }

    async def _send(self, client: httpx.AsyncClient, body: dict[str, Any]) -> httpx.Response:
        return await client.post(self.config.url or "", json=body, headers=self._headers(), timeout=self._timeout)

    async def _post(self, body: dict[str, Any]) -> httpx.Response:
        if self._http is not None:
            return await self._send(self._http, body)
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            return await self._send(client, body)

    async def _call(self, body: dict[str, Any]) -> str:
        try:
            response = await self._post(body)
        except httpx.TimeoutException as e:
            raise NetworkError(f"chat request timed out after {self.config.timeout_seconds}s") from e
        except httpx.HTTPError as e:
            raise NetworkError(f"chat request failed: {e}") from e

        if not response.is_success:
            raise ApiError(
                f"chat endpoint returned HTTP {response.status_code}",
                status_code=response.status_code,
                body=response.text,
            )
        try:
            data = response.json()
        except ValueError as e:
            raise ParsingError("chat response is not valid JSON") from e
        if not isinstance(data, dict) or not data.get("success") or not isinstance(data.get("message"), str):
            raise ValidationError(f"unexpected chat response: {truncate_body(response.text, 200)}")
        return data["message"].strip()

    async def send_message(
        self, message: str, context: ChatContext, history: list[ChatMessage] | None = None
    ) -> ChatReply:
        if not message or not message.strip():
            return ChatReply(success=False, error="Message is required")

        if not self.config.enabled:
            logger.warning("chat endpoint not configured; answering locally")
            return ChatReply(success=True, message=fallback_reply(message, context), fallback=True)

        try:
            answer = await self._call(self._request_body(message, context, history or []))
        except (ApiError, NetworkError, ParsingError, ValidationError) as e:
            logger.warning("chat fallback=True error_type=%s message=%s", e.error_type, e.message)
            return ChatReply(success=True, message=fallback_reply(message, context), fallback=True)
        return ChatReply(success=True, message=answer)
