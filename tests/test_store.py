from __future__ import annotations

from uuid import uuid4

import chromadb

from docchat.embeddings.service import EmbeddingConfig, HashEmbeddingBackend
from docchat.embeddings.store import FILE_NAME_FIELD, ChromaVectorIndex
from docchat.models import IndexRecord
from docchat.retrieval import LexicalReranker


def _index() -> ChromaVectorIndex:
    return ChromaVectorIndex(
        HashEmbeddingBackend(EmbeddingConfig(dim=16)),
        collection_name=f"test-{uuid4().hex[:8]}",
        reranker=LexicalReranker(),
        client=chromadb.EphemeralClient(),
    )


def _records(file_name: str, texts: list[str]) -> list[IndexRecord]:
    return [IndexRecord(id=f"{file_name}_{i}", text=t, file_name=file_name) for i, t in enumerate(texts)]


def test_upsert_and_search_returns_ranked_bounded_hits():
    index = _index()
    ids = index.upsert_batch(_records("a.txt", ["alpha beta", "gamma delta", "alpha gamma", "epsilon", "zeta"]))
    assert ids == ["a.txt_0", "a.txt_1", "a.txt_2", "a.txt_3", "a.txt_4"]
    assert index.count() == 5

    hits = index.search("alpha", recall_size=4, rerank_size=2)
    assert len(hits) == 2
    assert [hit.rank for hit in hits] == [1, 2]
    assert hits[0].score >= hits[1].score
    assert all(hit.file_name == "a.txt" for hit in hits)


def test_search_on_empty_index_returns_nothing():
    assert _index().search("anything", recall_size=6, rerank_size=5) == []


def test_delete_by_filter_only_removes_matching_file():
    index = _index()
    index.upsert_batch(_records("a.txt", ["alpha"]))
    index.upsert_batch(_records("b.txt", ["bravo", "charlie"]))
    index.delete_by_filter(FILE_NAME_FIELD, "b.txt")
    assert index.count() == 1
    hits = index.search("bravo", recall_size=5, rerank_size=5)
    assert [hit.file_name for hit in hits] == ["a.txt"]


def test_delete_all_empties_the_index():
    index = _index()
    index.upsert_batch(_records("a.txt", ["alpha", "beta"]))
    index.delete_all()
    assert index.count() == 0
