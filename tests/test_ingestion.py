"""Tests for text ingestion into the vector index."""

from __future__ import annotations

import math
from pathlib import Path
from typing import Sequence

import pytest

from docchat.ingestion.service import IngestionConfig, TextDocumentIngestor, UnsupportedFileTypeError
from docchat.models import IndexRecord


class RecordingIndex:
    def __init__(self) -> None:
        self.batches: list[list[IndexRecord]] = []

    def upsert_batch(self, records: Sequence[IndexRecord]) -> Sequence[str]:
        self.batches.append(list(records))
        return [record.id for record in records]


def test_chunks_are_preprocessed_and_named_after_the_file():
    index = RecordingIndex()
    ingestor = TextDocumentIngestor(index)
    text = "Open 9-5\n\nMon-Fri.   Closed   weekends."

    result = ingestor.ingest_text("hours.txt", text)

    records = [record for batch in index.batches for record in batch]
    assert result.record_ids == [record.id for record in records]
    assert records[0].id == "hours.txt_0"
    assert records[0].file_name == "hours.txt"
    assert records[0].text == "Open 9-5 Mon-Fri. Closed weekends."


def test_long_text_is_split_and_upserted_in_batches():
    index = RecordingIndex()
    ingestor = TextDocumentIngestor(index, IngestionConfig(chunk_size=200, chunk_overlap=50, batch_size=80))
    text = " ".join(f"word{i}" for i in range(5000))

    result = ingestor.ingest_text("big.txt", text)

    assert result.record_count > 80
    assert len(index.batches) == math.ceil(result.record_count / 80)
    assert all(len(batch) <= 80 for batch in index.batches)
    assert all(len(record.text) <= 200 for batch in index.batches for record in batch)
    ids = [record.id for batch in index.batches for record in batch]
    assert ids == [f"big.txt_{i}" for i in range(result.record_count)]


def test_empty_text_produces_no_records():
    index = RecordingIndex()
    result = TextDocumentIngestor(index).ingest_text("empty.txt", "   \n ")
    assert result.record_count == 0
    assert index.batches == []


def test_load_reads_text_files(tmp_path: Path) -> None:
    document = tmp_path / "faq.txt"
    document.write_text("Hello world", encoding="utf-8")
    assert TextDocumentIngestor(RecordingIndex()).load(document) == "Hello world"


def test_rejects_non_text_extensions(tmp_path: Path) -> None:
    document = tmp_path / "report.pdf"
    document.write_bytes(b"%PDF-1.4")
    with pytest.raises(UnsupportedFileTypeError):
        TextDocumentIngestor(RecordingIndex()).load(document)
