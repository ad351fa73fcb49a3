"""Vector index implementations."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Mapping, MutableMapping, Protocol, Sequence

import chromadb
from chromadb.api import ClientAPI
from chromadb.api.types import Documents, Embeddings as ChromaEmbeddings, IDs, Metadatas

from docchat.embeddings.service import EmbeddingBackend
from docchat.models import IndexHit, IndexRecord
from docchat.retrieval.rerank import Candidate, NoopReranker, Reranker

FILE_NAME_FIELD = "file_name"


class VectorIndex(Protocol):
    """Protocol for the vector index the pipeline searches and ingestion fills."""

    def search(self, query: str, *, recall_size: int, rerank_size: int) -> Sequence[IndexHit]:
        """Return at most ``rerank_size`` hits, best first, reranked from ``recall_size`` candidates."""

    def upsert_batch(self, records: Sequence[IndexRecord]) -> Sequence[str]:
        """Persist one batch of records and return their ids."""

    def delete_by_filter(self, field: str, value: str) -> None:
        """Remove every record whose metadata ``field`` equals ``value``."""

    def delete_all(self) -> None:
        """Remove every record."""

    def count(self) -> int:
        """Return total number of stored records."""


class ChromaVectorIndex:
    """Chroma-backed vector index; embedding happens here, never in the pipeline."""

    def __init__(
        self,
        embedding_backend: EmbeddingBackend,
        collection_name: str = "docchat",
        *,
        reranker: Reranker | None = None,
        client: ClientAPI | None = None,
        persist_directory: str | Path | None = None,
    ) -> None:
        if client is not None:
            self._client = client
        elif persist_directory is not None:
            self._client = chromadb.PersistentClient(path=str(persist_directory))
        else:
            self._client = chromadb.EphemeralClient()
        self._collection = self._client.get_or_create_collection(
            name=collection_name,
            metadata={"hnsw:space": "cosine"},
        )
        self._backend = embedding_backend
        self._reranker = reranker or NoopReranker()

    def search(self, query: str, *, recall_size: int, rerank_size: int) -> Sequence[IndexHit]:
        if recall_size <= 0 or rerank_size <= 0:
            return []
        available = self.count()
        if available == 0:
            return []
        vector = list(self._backend.embed_query(query))
        results = self._collection.query(
            query_embeddings=[vector],
            n_results=min(recall_size, available),
            include=["documents", "metadatas", "distances"],
        )
        candidates = self._deserialize_results(results)
        reranked = self._reranker.rerank(query, candidates)[:rerank_size]
        return [
            IndexHit(text=candidate.text, rank=rank, score=candidate.score, file_name=candidate.file_name)
            for rank, candidate in enumerate(reranked, start=1)
        ]

    def upsert_batch(self, records: Sequence[IndexRecord]) -> Sequence[str]:
        if not records:
            return []
        ids: IDs = [record.id for record in records]
        documents: Documents = [record.text for record in records]
        metadatas: Metadatas = [self._serialize_record(record) for record in records]
        vectors: ChromaEmbeddings = [list(vector) for vector in self._backend.embed_texts(documents)]
        self._collection.upsert(ids=ids, documents=documents, embeddings=vectors, metadatas=metadatas)
        return list(ids)

    def delete_by_filter(self, field: str, value: str) -> None:
        self._collection.delete(where={field: value})

    def delete_all(self) -> None:
        ids = self._collection.get(include=[])["ids"]
        if ids:
            self._collection.delete(ids=ids)

    def count(self) -> int:
        return int(self._collection.count())

    @staticmethod
    def _serialize_record(record: IndexRecord) -> MutableMapping[str, object]:
        return {FILE_NAME_FIELD: record.file_name}

    def _deserialize_results(self, results: Mapping[str, object]) -> list[Candidate]:
        documents = self._first(results.get("documents", []))
        metadatas = self._first(results.get("metadatas", []))
        distances = self._first(results.get("distances", []))
        candidates: list[Candidate] = []
        for position, document in enumerate(documents):
            metadata = metadatas[position] if position < len(metadatas) else None
            distance = distances[position] if position < len(distances) else None
            file_name = None
            if isinstance(metadata, Mapping) and metadata.get(FILE_NAME_FIELD) is not None:
                file_name = str(metadata[FILE_NAME_FIELD])
            score = 1.0 - float(distance) if distance is not None else 0.0
            candidates.append(Candidate(text=document, score=score, file_name=file_name))
        return candidates

    @staticmethod
    def _first(value: object) -> list:
        if isinstance(value, list) and value:
            first = value[0]
            return list(first) if isinstance(first, Iterable) and not isinstance(first, str) else []
        return []
