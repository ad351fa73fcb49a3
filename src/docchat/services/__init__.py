"""Service layer orchestrations for DocChat."""

from .admin import ChatHistoryService, DocumentAdminService
from .generation import SYSTEM_PERSONA, AnswerGenerator, build_context, build_messages
from .query import RetrievalOrchestrator
from .rewrite import ChatModel, QuestionRewriter, build_rewrite_prompt

__all__ = [
    "AnswerGenerator",
    "ChatHistoryService",
    "ChatModel",
    "DocumentAdminService",
    "QuestionRewriter",
    "RetrievalOrchestrator",
    "SYSTEM_PERSONA",
    "build_context",
    "build_messages",
    "build_rewrite_prompt",
]
