"""Async client for OpenAI-compatible chat-completion endpoints."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Mapping, Sequence, Union

import httpx

from docchat.errors import TransportError

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class Success:
    text: str

    outcome = "success"


@dataclass(frozen=True)
class RateLimited:
    detail: str

    outcome = "rate_limited"


@dataclass(frozen=True)
class Failure:
    reason: str
    payload: Any = None

    outcome = "failure"


ModelCallResult = Union[Success, RateLimited, Failure]


@dataclass(frozen=True)
class QuotaSignal:
    """Provider error message that means "this credential is out of quota".

    Matching is exact by default; set ``regex`` to treat ``message`` as a
    pattern searched in the provider's error text instead.
    """

    message: str
    regex: bool = False

    def matches(self, error_text: str) -> bool:
        if self.regex:
            return re.search(self.message, error_text) is not None
        return error_text == self.message


@dataclass(frozen=True)
class ChatCompletionConfig:
    """Configuration for the chat-completion endpoint."""

    endpoint: str = "https://router.huggingface.co/v1/chat/completions"
    model: str = "meta-llama/Llama-3.1-8B-Instruct:novita"
    temperature: float = 0.0
    timeout_seconds: float | None = 60.0


@dataclass(frozen=True)
class ChatCompletionMessage:
    role: str  # "system" | "user" | "assistant"
    content: str

    def to_payload(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


class ChatCompletionClient:
    """Posts message lists to the endpoint and classifies the reply."""

    def __init__(
        self,
        config: ChatCompletionConfig,
        quota_signal: QuotaSignal,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config
        self._quota_signal = quota_signal
        self._client = client or httpx.AsyncClient(timeout=config.timeout_seconds)

    async def complete(self, messages: Sequence[ChatCompletionMessage], *, credential: str) -> ModelCallResult:
        payload = {
            "messages": [message.to_payload() for message in messages],
            "model": self._config.model,
            "temperature": self._config.temperature,
        }
        headers = {"Authorization": f"Bearer {credential}", "Content-Type": "application/json"}
        try:
            response = await self._client.post(self._config.endpoint, json=payload, headers=headers)
        except httpx.TransportError as exc:
            raise TransportError(f"Chat completion request failed: {exc}") from exc
        try:
            body = response.json()
        except ValueError:
            return Failure(
                reason=f"Non-JSON response from model endpoint (HTTP {response.status_code})",
                payload=response.text,
            )
        return interpret_completion(body, self._quota_signal)

    async def aclose(self) -> None:
        await self._client.aclose()


def interpret_completion(body: Any, quota_signal: QuotaSignal) -> ModelCallResult:
    """Turn a decoded response body into a tagged call result."""

    content = _first_message_content(body)
    if content:
        return Success(text=content.strip())
    error_text = _error_text(body)
    if error_text is not None and quota_signal.matches(error_text):
        return RateLimited(detail=error_text)
    LOGGER.debug("Unexpected chat completion payload: %r", body)
    return Failure(reason="Unexpected chat completion response", payload=body)


def _first_message_content(body: Any) -> str | None:
    if not isinstance(body, Mapping):
        return None
    choices = body.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    first = choices[0]
    if not isinstance(first, Mapping):
        return None
    message = first.get("message")
    if not isinstance(message, Mapping):
        return None
    content = message.get("content")
    return content if isinstance(content, str) else None


def _error_text(body: Any) -> str | None:
    if not isinstance(body, Mapping):
        return None
    error = body.get("error")
    if isinstance(error, str):
        return error
    if isinstance(error, Mapping) and isinstance(error.get("message"), str):
        return error["message"]
    return None
