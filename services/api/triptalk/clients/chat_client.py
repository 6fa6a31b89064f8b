"""
AI chat client (OpenAI chat completions).

Sends the user's message with a fixed travel-assistant system prompt and
returns the first choice's text. Short and stateless: no conversation
history is kept between calls.
"""
import logging
from typing import Optional

import httpx

from triptalk.config import settings
from triptalk.results import ErrorKind, Result, failure, success
from triptalk.telemetry import UPSTREAM_ERRORS_TOTAL

logger = logging.getLogger(__name__)

FALLBACK_REPLY = "Sorry, I have no reply."


class ChatClient:
    def __init__(self) -> None:
        self._http: Optional[httpx.AsyncClient] = None

    async def start(self, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        self._http = httpx.AsyncClient(
            base_url=settings.openai_api_url,
            timeout=settings.external_timeout_seconds,
            transport=transport,
        )

    async def stop(self) -> None:
        if self._http:
            await self._http.aclose()
            self._http = None

    async def reply(self, message: Optional[str]) -> Result[str]:
        text = (message or "").strip()
        if not text:
            return failure(ErrorKind.VALIDATION, "Message is required.")

        api_key = settings.openai_api_key
        if not api_key:
            return failure(ErrorKind.UNAVAILABLE, "AI API key not configured on server.")
        if self._http is None:
            return failure(ErrorKind.UNAVAILABLE, "AI service is not available.")

        payload = {
            "model": settings.chat_model,
            "messages": [
                {"role": "system", "content": settings.chat_system_prompt},
                {"role": "user", "content": text},
            ],
        }
        try:
            resp = await self._http.post(
                "/chat/completions",
                json=payload,
                headers={"Authorization": f"Bearer {api_key}"},
            )
            resp.raise_for_status()
            data = resp.json()
        except httpx.TimeoutException:
            logger.warning("Chat completion timed out")
            UPSTREAM_ERRORS_TOTAL.labels(service="chat").inc()
            return failure(ErrorKind.TIMEOUT, "AI service timed out.")
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Chat completion failed: %s", exc)
            UPSTREAM_ERRORS_TOTAL.labels(service="chat").inc()
            return failure(ErrorKind.UPSTREAM, "AI API request failed.")

        choices = (data.get("choices") or [{}]) if isinstance(data, dict) else None
        first = choices[0] if isinstance(choices, list) else None
        if not isinstance(first, dict):
            logger.warning("Unexpected chat payload: %r", data)
            UPSTREAM_ERRORS_TOTAL.labels(service="chat").inc()
            return failure(ErrorKind.UPSTREAM, "AI API request failed.")

        message = first.get("message")
        content = message.get("content") if isinstance(message, dict) else None
        return success(content or FALLBACK_REPLY)


# Singleton
chat_client = ChatClient()
