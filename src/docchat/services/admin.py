"""Admin operations over uploaded documents and saved chat transcripts."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import List, Sequence

from docchat.embeddings.store import FILE_NAME_FIELD, VectorIndex
from docchat.ingestion.service import DuplicateDocumentError, TextDocumentIngestor
from docchat.metrics.observability import get_logger
from docchat.models import ChatMessage
from docchat.storage.documents import Document, DocumentStore

FILES_COLLECTION = "admin_files"
CHATS_COLLECTION = "chat_history"


class DocumentAdminService:
    """Keeps the file records and the vector index in step."""

    def __init__(self, store: DocumentStore, ingestor: TextDocumentIngestor, index: VectorIndex) -> None:
        self._store = store
        self._ingestor = ingestor
        self._index = index
        self._logger = get_logger("admin")

    def upload(self, file_name: str, text: str) -> Document:
        self._ingestor.ensure_supported(file_name)
        if self._store.find(FILES_COLLECTION, "file_name", file_name):
            raise DuplicateDocumentError(f'File "{file_name}" has already been uploaded.')
        result = self._ingestor.ingest_text(file_name, text)
        record = {
            "file_name": file_name,
            "text": text,
            "uploaded_at": datetime.now(timezone.utc).isoformat(),
            "record_count": result.record_count,
        }
        doc_id = self._store.save(FILES_COLLECTION, record)
        self._logger.info("document.uploaded", doc_id=doc_id, file_name=file_name, records=result.record_count)
        return {"doc_id": doc_id, **record}

    def upload_path(self, path: Path) -> Document:
        return self.upload(path.name, self._ingestor.load(path))

    def list(self) -> List[Document]:
        return self._store.get(FILES_COLLECTION)

    def delete(self, doc_id: str) -> Document:
        removed = self._store.delete(FILES_COLLECTION, doc_id)
        self._index.delete_by_filter(FILE_NAME_FIELD, removed["file_name"])
        self._logger.info("document.deleted", doc_id=doc_id, file_name=removed["file_name"])
        return removed

    def delete_all(self) -> int:
        removed = self._store.clear(FILES_COLLECTION)
        self._index.delete_all()
        self._logger.info("document.deleted_all", removed=removed)
        return removed


class ChatHistoryService:
    """Creates, lists and deletes saved conversations."""

    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    def save(self, history: Sequence[ChatMessage], doc_id: str | None = None) -> str:
        document = {"chat_history": [serialize_message(message) for message in history]}
        return self._store.save(CHATS_COLLECTION, document, doc_id=doc_id)

    def list(self) -> List[Document]:
        return self._store.get(CHATS_COLLECTION)

    def delete(self, doc_id: str) -> Document:
        return self._store.delete(CHATS_COLLECTION, doc_id)


def serialize_message(message: ChatMessage) -> dict[str, object]:
    return {
        "id": message.id,
        "sender": message.sender.value,
        "text": message.text,
        "timestamp": message.timestamp,
    }
