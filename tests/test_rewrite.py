"""Tests for standalone-question rewriting."""

from __future__ import annotations

import asyncio
from typing import Sequence

import pytest

from docchat.llm import ChatCompletionMessage, ModelCallResult, RateLimited, Success
from docchat.models import ChatMessage, Sender
from docchat.services.rewrite import INSTRUCTION_LINES, QuestionRewriter, build_rewrite_prompt, clean_rewrite


class RecordingModel:
    def __init__(self, result: ModelCallResult) -> None:
        self._result = result
        self.calls: list[tuple[list[ChatCompletionMessage], str]] = []

    async def complete(self, messages: Sequence[ChatCompletionMessage], *, credential: str) -> ModelCallResult:
        self.calls.append((list(messages), credential))
        return self._result


HISTORY = [
    ChatMessage(id="1", sender=Sender.USER, text="Do you sell gift cards?", timestamp=1),
    ChatMessage(id="2", sender=Sender.AI, text="Yes, in any amount.", timestamp=2),
    ChatMessage(id="3", sender=Sender.USER, text="Do they expire?", timestamp=3),
]


def _rewrite(model: RecordingModel, question: str = "Do they expire?", history=HISTORY) -> ModelCallResult:
    return asyncio.run(QuestionRewriter(model).rewrite(question, history, credential="primary"))


def test_prompt_embeds_transcript_in_order():
    prompt = build_rewrite_prompt("Do they expire?", HISTORY)
    transcript = "User: Do you sell gift cards?\nAI: Yes, in any amount.\nUser: Do they expire?"
    assert transcript in prompt
    assert prompt.rstrip().endswith("Standalone Question:")
    assert "Original Question: Do they expire?" in prompt


def test_single_user_message_with_selected_credential():
    model = RecordingModel(Success("Do gift cards expire?"))
    result = _rewrite(model)
    assert result == Success("Do gift cards expire?")
    messages, credential = model.calls[0]
    assert credential == "primary"
    assert [m.role for m in messages] == ["user"]


def test_rate_limit_is_returned_not_raised():
    model = RecordingModel(RateLimited("quota"))
    assert isinstance(_rewrite(model), RateLimited)


@pytest.mark.parametrize(
    "reply",
    [
        "Standalone Question: Do gift cards expire?",
        build_rewrite_prompt("Do they expire?", HISTORY) + " Do gift cards expire?",
        "\n".join([*INSTRUCTION_LINES, "Do gift cards expire?"]),
        '"Do gift cards expire?"',
        INSTRUCTION_LINES[3] + " Do gift cards expire?",
        INSTRUCTION_LINES[0].replace(" and must", "\nand must") + "\nDo gift cards expire?",
        "  ".join([*INSTRUCTION_LINES, "Do gift cards expire?"]),
    ],
)
def test_output_never_contains_instruction_text(reply: str):
    result = _rewrite(RecordingModel(Success(reply)))
    assert isinstance(result, Success)
    assert result.text == "Do gift cards expire?"
    for line in INSTRUCTION_LINES:
        assert line not in result.text


@pytest.mark.parametrize(
    ("reply", "expected"),
    [
        ('Is the plan called "Pro"', 'Is the plan called "Pro"'),
        ('"Pro" or "Plus"', '"Pro" or "Plus"'),
        ('"Is the plan called Pro?"', "Is the plan called Pro?"),
    ],
)
def test_quotes_inside_the_question_are_kept(reply: str, expected: str):
    assert clean_rewrite(reply) == expected


def test_reply_made_only_of_instructions_falls_back_to_question():
    result = _rewrite(RecordingModel(Success("\n".join(INSTRUCTION_LINES))))
    assert result == Success("Do they expire?")


def test_empty_history_still_rewrites():
    model = RecordingModel(Success("What are your opening hours?"))
    result = _rewrite(model, question="What are your hours?", history=[])
    assert result == Success("What are your opening hours?")
