"""Text document ingestion into the vector index."""

from __future__ import annotations

import time
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, List, Sequence

from langchain_community.document_loaders import TextLoader
from langchain_text_splitters import RecursiveCharacterTextSplitter

from docchat.metrics.observability import PipelineMetrics, get_logger
from docchat.models import IndexRecord
from docchat.text import preprocess

if TYPE_CHECKING:
    from docchat.embeddings.store import VectorIndex


class IngestionError(RuntimeError):
    """Raised when ingestion fails for a particular document."""


class UnsupportedFileTypeError(IngestionError):
    """Raised when a document extension is not supported by the ingestor."""


class DuplicateDocumentError(IngestionError):
    """Raised when a file with the same name was already uploaded."""


@dataclass(frozen=True)
class IngestionConfig:
    """Configuration for document ingestion."""

    chunk_size: int = 200
    chunk_overlap: int = 50
    batch_size: int = 80
    encoding: str = "utf-8"
    allowed_extensions: tuple[str, ...] = (".txt",)


@dataclass(frozen=True)
class IngestionResult:
    file_name: str
    record_ids: Sequence[str]

    @property
    def record_count(self) -> int:
        return len(self.record_ids)


class TextDocumentIngestor:
    """Split text into overlapping chunks and upsert them in batches."""

    _logger = get_logger("ingestion")

    def __init__(self, index: VectorIndex, config: IngestionConfig | None = None) -> None:
        self._index = index
        self._config = config or IngestionConfig()
        self._splitter = RecursiveCharacterTextSplitter(
            chunk_size=self._config.chunk_size,
            chunk_overlap=self._config.chunk_overlap,
        )

    def ensure_supported(self, file_name: str) -> None:
        suffix = Path(file_name).suffix.lower()
        if suffix not in self._config.allowed_extensions:
            raise UnsupportedFileTypeError(f"Unsupported document type: {suffix or '<none>'}")

    def load(self, path: Path) -> str:
        self.ensure_supported(path.name)
        try:
            documents = TextLoader(str(path), encoding=self._config.encoding).load()
        except Exception as exc:  # pragma: no cover - loader specific errors
            raise IngestionError(f"Failed to load {path}: {exc}") from exc
        return "\n".join(document.page_content for document in documents)

    def ingest_text(self, file_name: str, text: str) -> IngestionResult:
        start = time.perf_counter()
        records = self.build_records(file_name, text)
        ids: List[str] = []
        for offset in range(0, len(records), self._config.batch_size):
            batch = records[offset : offset + self._config.batch_size]
            ids.extend(self._index.upsert_batch(batch))
            self._logger.info("ingestion.batch", file_name=file_name, batch_size=len(batch))
        duration = time.perf_counter() - start
        PipelineMetrics.observe_ingestion(duration, len(records))
        self._logger.info(
            "ingestion.complete",
            file_name=file_name,
            record_count=len(records),
            duration_seconds=duration,
        )
        return IngestionResult(file_name=file_name, record_ids=ids)

    def build_records(self, file_name: str, text: str) -> list[IndexRecord]:
        chunks = [preprocess(chunk) for chunk in self._splitter.split_text(text)]
        return [
            IndexRecord(id=f"{file_name}_{order}", text=chunk, file_name=file_name)
            for order, chunk in enumerate(chunk for chunk in chunks if chunk)
        ]
