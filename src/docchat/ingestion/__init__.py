"""Document ingestion pipeline."""

from .service import (
    DuplicateDocumentError,
    IngestionConfig,
    IngestionError,
    IngestionResult,
    TextDocumentIngestor,
    UnsupportedFileTypeError,
)

__all__ = [
    "DuplicateDocumentError",
    "IngestionConfig",
    "IngestionError",
    "IngestionResult",
    "TextDocumentIngestor",
    "UnsupportedFileTypeError",
]
