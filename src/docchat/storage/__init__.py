"""Persistence for admin records and chat transcripts."""

from .documents import Document, DocumentNotFoundError, DocumentStore, JsonDocumentStore

__all__ = ["Document", "DocumentNotFoundError", "DocumentStore", "JsonDocumentStore"]
