"""Embedding backends and the vector index adapter."""

from .service import (
    EmbeddingBackend,
    EmbeddingConfig,
    HashEmbeddingBackend,
    HuggingFaceEmbeddingBackend,
    build_embedding_backend,
)
from .store import FILE_NAME_FIELD, ChromaVectorIndex, VectorIndex

__all__ = [
    "ChromaVectorIndex",
    "EmbeddingBackend",
    "EmbeddingConfig",
    "FILE_NAME_FIELD",
    "HashEmbeddingBackend",
    "HuggingFaceEmbeddingBackend",
    "VectorIndex",
    "build_embedding_backend",
]
