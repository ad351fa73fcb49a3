"""Tests for document and chat-transcript administration."""

from __future__ import annotations

from typing import Sequence

import pytest

from docchat.ingestion import DuplicateDocumentError, TextDocumentIngestor, UnsupportedFileTypeError
from docchat.models import ChatMessage, IndexRecord, Sender
from docchat.services.admin import CHATS_COLLECTION, FILES_COLLECTION, ChatHistoryService, DocumentAdminService
from docchat.storage import JsonDocumentStore


class FakeIndex:
    def __init__(self) -> None:
        self.records: dict[str, IndexRecord] = {}

    def upsert_batch(self, records: Sequence[IndexRecord]) -> Sequence[str]:
        for record in records:
            self.records[record.id] = record
        return [record.id for record in records]

    def delete_by_filter(self, field: str, value: str) -> None:
        assert field == "file_name"
        self.records = {k: r for k, r in self.records.items() if r.file_name != value}

    def delete_all(self) -> None:
        self.records = {}


def _service() -> tuple[DocumentAdminService, JsonDocumentStore, FakeIndex]:
    store = JsonDocumentStore()
    index = FakeIndex()
    return DocumentAdminService(store, TextDocumentIngestor(index), index), store, index


def test_upload_indexes_and_records_file():
    service, store, index = _service()
    record = service.upload("hours.txt", "Open 9-5 Mon-Fri. Closed weekends.")
    assert record["file_name"] == "hours.txt"
    assert record["record_count"] == 1
    assert set(index.records) == {"hours.txt_0"}
    assert store.get(FILES_COLLECTION)[0]["doc_id"] == record["doc_id"]


def test_duplicate_file_name_is_rejected():
    service, _, index = _service()
    service.upload("hours.txt", "Open 9-5")
    with pytest.raises(DuplicateDocumentError):
        service.upload("hours.txt", "Different text")
    assert len(index.records) == 1


def test_only_text_files_are_accepted():
    service, store, _ = _service()
    with pytest.raises(UnsupportedFileTypeError):
        service.upload("notes.md", "# heading")
    assert store.get(FILES_COLLECTION) == []


def test_delete_removes_record_and_its_vectors():
    service, _, index = _service()
    keep = service.upload("a.txt", "alpha")
    drop = service.upload("b.txt", "bravo")
    service.delete(drop["doc_id"])
    assert [doc["doc_id"] for doc in service.list()] == [keep["doc_id"]]
    assert {record.file_name for record in index.records.values()} == {"a.txt"}


def test_delete_all_wipes_records_and_index():
    service, _, index = _service()
    service.upload("a.txt", "alpha")
    service.upload("b.txt", "bravo")
    assert service.delete_all() == 2
    assert service.list() == []
    assert index.records == {}


def test_chat_history_create_update_delete():
    store = JsonDocumentStore()
    chats = ChatHistoryService(store)
    first = [ChatMessage(id="1", sender=Sender.USER, text="Hi", timestamp=1)]
    doc_id = chats.save(first)
    second = first + [ChatMessage(id="2", sender=Sender.AI, text="Hello!", timestamp=2)]
    assert chats.save(second, doc_id=doc_id) == doc_id

    saved = store.get(CHATS_COLLECTION)
    assert len(saved) == 1
    assert saved[0]["chat_history"][1] == {"id": "2", "sender": "ai", "text": "Hello!", "timestamp": 2}

    chats.delete(doc_id)
    assert chats.list() == []
