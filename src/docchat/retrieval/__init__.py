"""Retrieval components."""

from .rerank import CrossEncoderReranker, LexicalReranker, NoopReranker, Reranker, build_reranker
from .service import RetrievalConfig, Retriever, VectorRetriever

__all__ = [
    "CrossEncoderReranker",
    "LexicalReranker",
    "NoopReranker",
    "RetrievalConfig",
    "Reranker",
    "Retriever",
    "VectorRetriever",
    "build_reranker",
]
