"""Query orchestration: rewrite, retrieve, generate."""

from __future__ import annotations

import time
from typing import Sequence

from docchat.llm.client import ModelCallResult
from docchat.llm.failover import FailoverPolicy
from docchat.metrics.observability import PipelineMetrics, get_logger
from docchat.models import INSUFFICIENT_INFORMATION, ChatMessage
from docchat.retrieval.service import Retriever
from docchat.services.generation import AnswerGenerator
from docchat.services.rewrite import QuestionRewriter


class RetrievalOrchestrator:
    """Runs one question through the answering pipeline.

    Stages run strictly in sequence. An empty retrieval returns the fixed
    insufficient-information reply without calling the generator; every
    error from a stage propagates to the caller unchanged.
    """

    rewrite_stage = "rewrite"

    def __init__(
        self,
        rewriter: QuestionRewriter,
        retriever: Retriever,
        generator: AnswerGenerator,
        failover: FailoverPolicy,
    ) -> None:
        self._rewriter = rewriter
        self._retriever = retriever
        self._generator = generator
        self._failover = failover
        self._logger = get_logger("query")

    async def answer(self, question: str, history: Sequence[ChatMessage]) -> str:
        start = time.perf_counter()

        async def _rewrite(credential: str) -> ModelCallResult:
            return await self._rewriter.rewrite(question, history, credential=credential)

        standalone = await self._failover.run(self.rewrite_stage, _rewrite)
        rewrite_duration = time.perf_counter() - start
        PipelineMetrics.observe_rewrite(rewrite_duration)
        self._logger.info(
            "rewrite.complete",
            question=question,
            standalone_question=standalone,
            duration_seconds=rewrite_duration,
        )

        retrieval_start = time.perf_counter()
        chunks = await self._retriever.retrieve(standalone)
        retrieval_duration = time.perf_counter() - retrieval_start
        PipelineMetrics.observe_retrieval(retrieval_duration, len(chunks))
        if not chunks:
            PipelineMetrics.observe_short_circuit()
            self._logger.info("retrieval.empty", standalone_question=standalone)
            return INSUFFICIENT_INFORMATION
        self._logger.info(
            "retrieval.complete",
            chunk_count=len(chunks),
            duration_seconds=retrieval_duration,
        )

        generation_start = time.perf_counter()
        text = await self._generator.generate(chunks, question, history)
        generation_duration = time.perf_counter() - generation_start
        PipelineMetrics.observe_generation(generation_duration)
        self._logger.info(
            "generation.complete",
            duration_seconds=generation_duration,
            total_seconds=time.perf_counter() - start,
        )
        return text
