"""Retrieval on top of the vector index."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, Sequence

from docchat.errors import RetrievalError
from docchat.metrics.observability import get_logger
from docchat.models import RetrievedChunk
from docchat.text import preprocess

if TYPE_CHECKING:
    from docchat.embeddings.store import VectorIndex


@dataclass(frozen=True)
class RetrievalConfig:
    """Recall pool size and the smaller reranked output size."""

    recall_size: int = 6
    rerank_size: int = 5

    def __post_init__(self) -> None:
        if self.rerank_size < 1:
            raise ValueError("rerank_size must be at least 1")
        if self.recall_size < self.rerank_size:
            raise ValueError("recall_size must be >= rerank_size")


class Retriever(Protocol):
    """Retrieve relevant chunks for a standalone question."""

    async def retrieve(self, query: str) -> Sequence[RetrievedChunk]:
        """Return reranked chunks, best first; empty when nothing matches."""


class VectorRetriever:
    """Retriever backed by a ``VectorIndex``."""

    def __init__(self, index: VectorIndex, config: RetrievalConfig | None = None) -> None:
        self._index = index
        self._config = config or RetrievalConfig()
        self._logger = get_logger("retrieval")

    async def retrieve(self, query: str) -> Sequence[RetrievedChunk]:
        processed = preprocess(query)
        try:
            hits = await asyncio.to_thread(
                self._index.search,
                processed,
                recall_size=self._config.recall_size,
                rerank_size=self._config.rerank_size,
            )
        except Exception as exc:
            self._logger.error("retrieval.error", query=processed, detail=str(exc))
            raise RetrievalError(f"Vector index search failed: {exc}") from exc
        return [
            RetrievedChunk(text=hit.text, source_rank=hit.rank, score=hit.score, file_name=hit.file_name)
            for hit in hits[: self._config.rerank_size]
        ]
