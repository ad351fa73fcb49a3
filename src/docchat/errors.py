"""Error taxonomy for the answering pipeline."""

from __future__ import annotations

from typing import Any


class DocChatError(RuntimeError):
    """Base class for pipeline failures."""


class ConfigurationError(DocChatError):
    """Raised when required configuration (e.g. model credentials) is missing."""


class TransportError(DocChatError):
    """Raised when the model endpoint cannot be reached."""


class UnexpectedResponse(DocChatError):
    """Raised when the model endpoint returns a payload we cannot interpret."""

    def __init__(self, message: str, *, payload: Any = None) -> None:
        super().__init__(message)
        self.payload = payload


class QuotaExhausted(DocChatError):
    """Raised when every configured credential reported the quota signal."""

    def __init__(self, stage: str, attempts: int) -> None:
        super().__init__(f"All {attempts} model credentials are rate limited ({stage})")
        self.stage = stage
        self.attempts = attempts


class RetrievalError(DocChatError):
    """Raised when the vector index cannot serve a search."""


__all__ = [
    "ConfigurationError",
    "DocChatError",
    "QuotaExhausted",
    "RetrievalError",
    "TransportError",
    "UnexpectedResponse",
]
