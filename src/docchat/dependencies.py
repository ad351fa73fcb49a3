"""Construct the pipeline and admin services from settings."""

from __future__ import annotations

from dataclasses import dataclass

import chromadb

from docchat.config import Settings
from docchat.embeddings import ChromaVectorIndex, EmbeddingConfig, VectorIndex, build_embedding_backend
from docchat.errors import ConfigurationError
from docchat.ingestion import IngestionConfig, TextDocumentIngestor
from docchat.llm import ChatCompletionClient, ChatCompletionConfig, FailoverPolicy, QuotaSignal
from docchat.retrieval import RetrievalConfig, VectorRetriever, build_reranker
from docchat.services import (
    AnswerGenerator,
    ChatHistoryService,
    DocumentAdminService,
    QuestionRewriter,
    RetrievalOrchestrator,
)
from docchat.storage import JsonDocumentStore


@dataclass(frozen=True)
class AppDependencies:
    orchestrator: RetrievalOrchestrator
    documents: DocumentAdminService
    chats: ChatHistoryService
    index: VectorIndex
    model_client: ChatCompletionClient | None = None


def build_dependencies(settings: Settings) -> AppDependencies:
    if not settings.credentials:
        raise ConfigurationError(
            "No model API key configured; set DOCCHAT_LLM_PRIMARY_API_KEY (and optionally "
            "DOCCHAT_LLM_SECONDARY_API_KEY)",
        )
    reranker = build_reranker(
        settings.retrieval_rerank,
        lexical_weight=settings.retrieval_lexical_weight,
        model=settings.cross_encoder_model,
        device=settings.cross_encoder_device,
    )
    chroma_client = None
    if settings.chroma_host:
        chroma_client = chromadb.HttpClient(
            host=settings.chroma_host,
            port=settings.chroma_port or 8000,
            ssl=settings.chroma_ssl,
        )
    index = ChromaVectorIndex(
        build_embedding_backend(
            EmbeddingConfig(
                model=settings.embedding_model,
                dim=settings.embedding_dim,
                use_model=settings.use_model_embeddings,
                normalize=True,
            ),
        ),
        collection_name=settings.chroma_collection,
        reranker=reranker,
        client=chroma_client,
        persist_directory=None if chroma_client else settings.chroma_persist_dir,
    )

    model_client = ChatCompletionClient(
        ChatCompletionConfig(
            endpoint=settings.llm_endpoint,
            model=settings.llm_model,
            temperature=settings.llm_temperature,
            timeout_seconds=settings.llm_timeout_seconds,
        ),
        QuotaSignal(message=settings.llm_quota_error_message, regex=settings.llm_quota_error_regex),
    )
    failover = FailoverPolicy(settings.credentials)
    orchestrator = RetrievalOrchestrator(
        rewriter=QuestionRewriter(model_client),
        retriever=VectorRetriever(
            index,
            RetrievalConfig(
                recall_size=settings.retrieval_recall_size,
                rerank_size=settings.retrieval_rerank_size,
            ),
        ),
        generator=AnswerGenerator(model_client, failover),
        failover=failover,
    )

    store = JsonDocumentStore(settings.store_path)
    ingestor = TextDocumentIngestor(
        index,
        IngestionConfig(
            chunk_size=settings.chunk_size,
            chunk_overlap=settings.chunk_overlap,
            batch_size=settings.upsert_batch_size,
            allowed_extensions=settings.allowed_extensions_tuple,
        ),
    )
    return AppDependencies(
        orchestrator=orchestrator,
        documents=DocumentAdminService(store, ingestor, index),
        chats=ChatHistoryService(store),
        index=index,
        model_client=model_client,
    )
