"""Key-value document persistence for uploaded files and chat transcripts."""

from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Any, Dict, List, Mapping, Protocol
from uuid import uuid4

Document = Dict[str, Any]


class DocumentNotFoundError(KeyError):
    """Raised when a document id does not exist in a collection."""


class DocumentStore(Protocol):
    """Opaque collection/document store."""

    def save(self, collection: str, document: Mapping[str, Any], doc_id: str | None = None) -> str:
        """Create (``doc_id`` None) or overwrite a document; return its id."""

    def get(self, collection: str) -> List[Document]:
        """Return every document in the collection with its ``doc_id``."""

    def find(self, collection: str, field: str, value: Any) -> List[Document]:
        """Return documents whose ``field`` equals ``value``."""

    def delete(self, collection: str, doc_id: str) -> Document:
        """Remove one document and return it."""

    def clear(self, collection: str) -> int:
        """Remove every document in the collection; return how many were removed."""


class JsonDocumentStore:
    """In-memory store, optionally mirrored to a JSON file after each write."""

    def __init__(self, path: Path | None = None) -> None:
        self._path = path
        self._lock = threading.Lock()
        self._collections: Dict[str, Dict[str, Document]] = {}
        if path is not None and path.exists():
            loaded = json.loads(path.read_text(encoding="utf-8"))
            if isinstance(loaded, dict):
                self._collections = {name: dict(docs) for name, docs in loaded.items() if isinstance(docs, dict)}

    def save(self, collection: str, document: Mapping[str, Any], doc_id: str | None = None) -> str:
        with self._lock:
            docs = self._collections.setdefault(collection, {})
            if doc_id is not None and doc_id not in docs:
                raise DocumentNotFoundError(doc_id)
            key = doc_id or uuid4().hex
            docs[key] = json.loads(json.dumps(dict(document), default=str))
            self._flush()
        return key

    def get(self, collection: str) -> List[Document]:
        with self._lock:
            docs = self._collections.get(collection, {})
            return [{"doc_id": key, **value} for key, value in docs.items()]

    def find(self, collection: str, field: str, value: Any) -> List[Document]:
        return [doc for doc in self.get(collection) if doc.get(field) == value]

    def delete(self, collection: str, doc_id: str) -> Document:
        with self._lock:
            docs = self._collections.get(collection, {})
            if doc_id not in docs:
                raise DocumentNotFoundError(doc_id)
            removed = docs.pop(doc_id)
            self._flush()
        return {"doc_id": doc_id, **removed}

    def clear(self, collection: str) -> int:
        with self._lock:
            removed = len(self._collections.pop(collection, {}))
            self._flush()
        return removed

    def _flush(self) -> None:
        if self._path is None:
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp.write_text(json.dumps(self._collections, indent=2), encoding="utf-8")
        tmp.replace(self._path)
