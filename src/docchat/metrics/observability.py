"""Observability helpers for DocChat."""

from __future__ import annotations

import logging

import structlog
from prometheus_client import Counter, Histogram

_logger_configured = False


def configure_logging(level: int = logging.INFO) -> None:
    global _logger_configured  # noqa: PLW0603 - module-level guard
    if _logger_configured:
        return
    logging.basicConfig(level=level, format="%(message)s")
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    _logger_configured = True


def bind_correlation_id(correlation_id: str) -> None:
    structlog.contextvars.bind_contextvars(correlation_id=correlation_id)


def clear_correlation_id() -> None:
    structlog.contextvars.clear_contextvars()


def get_logger(name: str = "docchat") -> structlog.BoundLogger:
    configure_logging()
    return structlog.get_logger(name)


class PipelineMetrics:
    """Prometheus metrics for pipeline stages."""

    ingestion_latency = Histogram(
        "docchat_ingestion_duration_seconds",
        "Time spent chunking and upserting an uploaded document.",
        buckets=(0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0),
    )
    ingestion_records = Histogram(
        "docchat_ingestion_record_count",
        "Index records produced per uploaded document.",
        buckets=(0, 1, 5, 10, 20, 40, 80, 160),
    )
    rewrite_latency = Histogram(
        "docchat_rewrite_duration_seconds",
        "Time spent rewriting the question into standalone form.",
        buckets=(0.05, 0.1, 0.5, 1.0, 2.0, 5.0, 10.0),
    )
    retrieval_latency = Histogram(
        "docchat_retrieval_duration_seconds",
        "Time spent retrieving context chunks.",
        buckets=(0.01, 0.05, 0.1, 0.5, 1.0, 2.0, 5.0),
    )
    retrieved_chunk_count = Histogram(
        "docchat_retrieved_chunk_count",
        "Number of chunks returned by retrieval after reranking.",
        buckets=(0, 1, 2, 3, 5, 8, 13),
    )
    generation_latency = Histogram(
        "docchat_generation_duration_seconds",
        "Time spent generating answers.",
        buckets=(0.05, 0.1, 0.5, 1.0, 2.0, 5.0, 10.0),
    )
    model_calls = Counter(
        "docchat_model_calls_total",
        "Chat-completion calls by pipeline stage and outcome.",
        ["stage", "outcome"],
    )
    credential_failovers = Counter(
        "docchat_credential_failovers_total",
        "Times a rate-limited credential was replaced by the next one.",
        ["stage"],
    )
    short_circuits = Counter(
        "docchat_short_circuit_total",
        "Answers returned without generation because retrieval found nothing.",
    )

    @classmethod
    def observe_ingestion(cls, duration_seconds: float, record_count: int) -> None:
        cls.ingestion_latency.observe(duration_seconds)
        cls.ingestion_records.observe(record_count)

    @classmethod
    def observe_rewrite(cls, duration_seconds: float) -> None:
        cls.rewrite_latency.observe(duration_seconds)

    @classmethod
    def observe_retrieval(cls, duration_seconds: float, chunk_count: int) -> None:
        cls.retrieval_latency.observe(duration_seconds)
        cls.retrieved_chunk_count.observe(chunk_count)

    @classmethod
    def observe_generation(cls, duration_seconds: float) -> None:
        cls.generation_latency.observe(duration_seconds)

    @classmethod
    def observe_model_call(cls, stage: str, outcome: str) -> None:
        cls.model_calls.labels(stage=stage, outcome=outcome).inc()

    @classmethod
    def observe_failover(cls, stage: str) -> None:
        cls.credential_failovers.labels(stage=stage).inc()

    @classmethod
    def observe_short_circuit(cls) -> None:
        cls.short_circuits.inc()


__all__ = [
    "PipelineMetrics",
    "bind_correlation_id",
    "clear_correlation_id",
    "configure_logging",
    "get_logger",
]
