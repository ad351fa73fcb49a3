"""Runtime configuration for the DocChat services."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_QUOTA_ERROR_MESSAGE = (
    "You have exceeded your monthly included credits for Inference Providers. "
    "Subscribe to PRO to get 20x more monthly included credits."
)


class Settings(BaseSettings):
    """Environment-backed configuration model."""

    model_config = SettingsConfigDict(env_prefix="docchat_", env_file=".env", case_sensitive=False)

    environment: Literal["dev", "test", "prod"] = "dev"

    # Vector index
    chroma_persist_dir: Path = Path("./.chroma")
    chroma_collection: str = "docchat-default"
    chroma_host: str | None = None
    chroma_port: int | None = None
    chroma_ssl: bool = False

    embedding_model: str = "BAAI/bge-small-en-v1.5"
    embedding_dim: int = 384
    use_model_embeddings: bool = False

    # Retrieval: wide recall pool, reranked down to a precision pool
    retrieval_recall_size: int = 6
    retrieval_rerank_size: int = 5
    retrieval_rerank: Literal["none", "lexical", "cross_encoder"] = "lexical"
    retrieval_lexical_weight: float = 0.35
    cross_encoder_model: str = "cross-encoder/ms-marco-MiniLM-L-6-v2"
    cross_encoder_device: str | None = None

    # Chat-completion endpoint
    llm_endpoint: str = "https://router.huggingface.co/v1/chat/completions"
    llm_model: str = "meta-llama/Llama-3.1-8B-Instruct:novita"
    llm_temperature: float = 0.0
    llm_primary_api_key: str = ""
    llm_secondary_api_key: str = ""
    llm_extra_api_keys: tuple[str, ...] | str = ()
    llm_timeout_seconds: float | None = 60.0
    llm_quota_error_message: str = DEFAULT_QUOTA_ERROR_MESSAGE
    llm_quota_error_regex: bool = False

    # Ingestion
    chunk_size: int = 200
    chunk_overlap: int = 50
    upsert_batch_size: int = 80
    allowed_extensions: tuple[str, ...] | str = (".txt",)
    max_files: int = 12
    max_upload_size_mb: int = 10

    # Persistence (None keeps records in memory only)
    store_path: Path | None = None

    # CORS
    cors_allow_origins: tuple[str, ...] = ()
    cors_allow_credentials: bool = False
    cors_allow_methods: tuple[str, ...] = ("GET", "POST", "DELETE", "OPTIONS")
    cors_allow_headers: tuple[str, ...] = ("*",)

    # Security
    api_key: str | None = None  # if set, admin routes require it in X-API-Key

    @model_validator(mode="after")
    def _check_retrieval_bounds(self) -> "Settings":
        if self.retrieval_rerank_size < 1:
            raise ValueError("retrieval_rerank_size must be at least 1")
        if self.retrieval_recall_size < self.retrieval_rerank_size:
            raise ValueError("retrieval_recall_size must be >= retrieval_rerank_size")
        return self

    @property
    def credentials(self) -> tuple[str, ...]:
        """Model API keys in failover order, empty entries dropped."""

        extra = self.llm_extra_api_keys
        if isinstance(extra, str):
            extra = tuple(part.strip() for part in extra.split(","))
        ordered = (self.llm_primary_api_key, self.llm_secondary_api_key, *extra)
        return tuple(key for key in ordered if key)

    @property
    def allowed_extensions_tuple(self) -> tuple[str, ...]:
        value = self.allowed_extensions
        if isinstance(value, tuple):
            return value
        if isinstance(value, str):
            parts = [p.strip() for p in value.split(",") if p.strip()]
            return tuple(parts) if parts else (".txt",)
        return (".txt",)


@lru_cache(maxsize=1)
def _cached_settings() -> Settings:
    return Settings()


def get_settings(override: Optional[dict[str, object]] = None) -> Settings:
    """Return settings, optionally overriding values without mutating cache."""

    if override:
        return Settings(**override)
    return _cached_settings()
