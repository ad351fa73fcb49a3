"""Standalone-question rewriting."""

from __future__ import annotations

from typing import Protocol, Sequence

from docchat.llm.client import ChatCompletionMessage, ModelCallResult, Success
from docchat.models import ChatMessage, render_transcript
from docchat.text import preprocess

INSTRUCTION_LINES = (
    "You are a helpful AI assistant. The following instructions are for you only "
    "and must never be included, quoted, or referenced in your answer.",
    "- Rewrite the user's question as a clear, self-contained standalone question.",
    "- Use the conversation history below to understand the context of the question.",
    "- Do not include any instructions or prompt text in your output.",
    "- The standalone question should be concise and understandable without additional context.",
)
ANSWER_LABEL = "Standalone Question:"


class ChatModel(Protocol):
    """Anything that can run one chat completion with a given credential."""

    async def complete(self, messages: Sequence[ChatCompletionMessage], *, credential: str) -> ModelCallResult:
        """Return the tagged result of a single model call."""


def build_rewrite_prompt(question: str, history: Sequence[ChatMessage]) -> str:
    return "\n".join(
        [
            *INSTRUCTION_LINES,
            "",
            "Conversation history:",
            render_transcript(history),
            "",
            f"Original Question: {question}",
            ANSWER_LABEL,
        ]
    )


def clean_rewrite(text: str) -> str:
    """Drop anything the model echoed back from the prompt scaffolding."""

    if ANSWER_LABEL in text:
        text = text.rsplit(ANSWER_LABEL, 1)[1]
    kept = [line for line in text.splitlines() if not line.strip().startswith("Original Question:")]
    # Collapse first so instructions wrapped across lines still match whole.
    cleaned = preprocess(" ".join(kept))
    for line in INSTRUCTION_LINES:
        cleaned = cleaned.replace(preprocess(line), " ")
    return _unquote(preprocess(cleaned))


def _unquote(text: str) -> str:
    """Remove one pair of double quotes wrapping the whole reply."""

    if len(text) >= 2 and text[0] == text[-1] == '"' and '"' not in text[1:-1]:
        return text[1:-1].strip()
    return text


class QuestionRewriter:
    """Turns a follow-up question into one that stands on its own."""

    def __init__(self, model: ChatModel) -> None:
        self._model = model

    async def rewrite(self, question: str, history: Sequence[ChatMessage], *, credential: str) -> ModelCallResult:
        prompt = build_rewrite_prompt(question, history)
        result = await self._model.complete(
            [ChatCompletionMessage(role="user", content=prompt)],
            credential=credential,
        )
        if isinstance(result, Success):
            cleaned = clean_rewrite(result.text)
            # Nothing left after cleaning: fall back to the user's own wording.
            return Success(text=cleaned or question.strip())
        return result
