"""Shared domain models used across the DocChat pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Sequence

INSUFFICIENT_INFORMATION = "I do not have enough information to answer the question."


class Sender(str, Enum):
    """Author of a chat turn."""

    USER = "user"
    AI = "ai"


@dataclass(frozen=True)
class ChatMessage:
    """One turn of a conversation transcript."""

    id: str
    sender: Sender
    text: str
    timestamp: int  # epoch milliseconds

    @property
    def speaker(self) -> str:
        return "User" if self.sender is Sender.USER else "AI"


@dataclass(frozen=True)
class RetrievedChunk:
    """Chunk returned by retrieval; rank 1 is the most relevant."""

    text: str
    source_rank: int
    score: float | None = None
    file_name: str | None = None


@dataclass(frozen=True)
class IndexRecord:
    """Chunk of an uploaded document ready to be written to the vector index."""

    id: str
    text: str
    file_name: str


@dataclass(frozen=True)
class IndexHit:
    """Raw hit produced by the vector index after reranking."""

    text: str
    rank: int
    score: float
    file_name: str | None = None


def render_transcript(history: Sequence[ChatMessage]) -> str:
    """Render a conversation as ``User: ...`` / ``AI: ...`` lines."""

    return "\n".join(f"{message.speaker}: {message.text}" for message in history)
