"""Credential failover for rate-limited model calls."""

from __future__ import annotations

from typing import Awaitable, Callable, Sequence

from docchat.errors import ConfigurationError, QuotaExhausted, UnexpectedResponse
from docchat.llm.client import Failure, ModelCallResult, RateLimited, Success
from docchat.metrics.observability import PipelineMetrics, get_logger

Attempt = Callable[[str], Awaitable[ModelCallResult]]


class FailoverPolicy:
    """Walk the credentials in order, moving on only when one is rate limited.

    A ``Failure`` stops the walk immediately with ``UnexpectedResponse``;
    transport errors raised by the attempt propagate untouched. When every
    credential is rate limited the call fails with ``QuotaExhausted``.
    """

    def __init__(self, credentials: Sequence[str]) -> None:
        if not credentials:
            raise ConfigurationError("At least one model API credential is required")
        self._credentials = tuple(credentials)
        self._logger = get_logger("failover")

    @property
    def size(self) -> int:
        return len(self._credentials)

    async def run(self, stage: str, attempt: Attempt) -> str:
        for position, credential in enumerate(self._credentials, start=1):
            result = await attempt(credential)
            if not isinstance(result, (Success, Failure, RateLimited)):
                raise UnexpectedResponse(f"{stage}: unrecognised model call result", payload=result)
            PipelineMetrics.observe_model_call(stage, result.outcome)
            if isinstance(result, Success):
                return result.text
            if isinstance(result, Failure):
                self._logger.error("model.failure", stage=stage, credential=position, reason=result.reason)
                raise UnexpectedResponse(f"{stage}: {result.reason}", payload=result.payload)
            self._logger.warning(
                "model.rate_limited",
                stage=stage,
                credential=position,
                remaining=len(self._credentials) - position,
            )
            if position < len(self._credentials):
                PipelineMetrics.observe_failover(stage)
        raise QuotaExhausted(stage=stage, attempts=len(self._credentials))
