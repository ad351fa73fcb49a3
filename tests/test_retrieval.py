"""Tests for the vector retriever and rerankers."""

from __future__ import annotations

import asyncio
from typing import Sequence

import pytest

from docchat.errors import RetrievalError
from docchat.models import IndexHit
from docchat.retrieval import LexicalReranker, NoopReranker, RetrievalConfig, VectorRetriever
from docchat.retrieval.rerank import Candidate


class StubIndex:
    def __init__(self, hits: Sequence[IndexHit] = (), error: Exception | None = None) -> None:
        self._hits = list(hits)
        self._error = error
        self.calls: list[tuple[str, int, int]] = []

    def search(self, query: str, *, recall_size: int, rerank_size: int) -> Sequence[IndexHit]:
        self.calls.append((query, recall_size, rerank_size))
        if self._error is not None:
            raise self._error
        return self._hits


def test_retrieve_preprocesses_query_and_passes_pool_sizes():
    index = StubIndex([IndexHit(text="Open 9-5 Mon-Fri", rank=1, score=0.9, file_name="hours.txt")])
    retriever = VectorRetriever(index, RetrievalConfig(recall_size=6, rerank_size=5))

    chunks = asyncio.run(retriever.retrieve("  What are\n\nyour hours? "))

    assert index.calls == [("What are your hours?", 6, 5)]
    assert len(chunks) == 1
    assert chunks[0].text == "Open 9-5 Mon-Fri"
    assert chunks[0].source_rank == 1
    assert chunks[0].file_name == "hours.txt"


def test_retrieve_keeps_hit_order_verbatim():
    hits = [IndexHit(text=f"chunk {rank}", rank=rank, score=1.0 / rank) for rank in range(1, 4)]
    chunks = asyncio.run(VectorRetriever(StubIndex(hits)).retrieve("q"))
    assert [c.text for c in chunks] == ["chunk 1", "chunk 2", "chunk 3"]
    assert [c.source_rank for c in chunks] == [1, 2, 3]


def test_empty_result_is_not_an_error():
    assert asyncio.run(VectorRetriever(StubIndex([])).retrieve("q")) == []


def test_index_failure_becomes_retrieval_error():
    retriever = VectorRetriever(StubIndex(error=ConnectionError("index unreachable")))
    with pytest.raises(RetrievalError):
        asyncio.run(retriever.retrieve("q"))


def test_config_rejects_recall_smaller_than_rerank():
    with pytest.raises(ValueError):
        RetrievalConfig(recall_size=2, rerank_size=5)


def test_lexical_reranker_promotes_token_overlap():
    candidates = [
        Candidate(text="parking is free after six", score=0.6),
        Candidate(text="store hours are nine to five", score=0.55),
    ]
    reranked = LexicalReranker(weight=0.5).rerank("store hours", candidates)
    assert reranked[0].text == "store hours are nine to five"


def test_noop_reranker_sorts_by_similarity():
    candidates = [Candidate(text="b", score=0.2), Candidate(text="a", score=0.8)]
    assert [c.text for c in NoopReranker().rerank("q", candidates)] == ["a", "b"]
