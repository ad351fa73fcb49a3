"""Chat-completion client and credential failover."""

from .client import (
    ChatCompletionClient,
    ChatCompletionConfig,
    ChatCompletionMessage,
    Failure,
    ModelCallResult,
    QuotaSignal,
    RateLimited,
    Success,
    interpret_completion,
)
from .failover import FailoverPolicy

__all__ = [
    "ChatCompletionClient",
    "ChatCompletionConfig",
    "ChatCompletionMessage",
    "FailoverPolicy",
    "Failure",
    "ModelCallResult",
    "QuotaSignal",
    "RateLimited",
    "Success",
    "interpret_completion",
]
