"""Second-pass rerankers applied to the recall pool."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Sequence


@dataclass(frozen=True)
class Candidate:
    """Recall-pool entry awaiting reranking."""

    text: str
    score: float
    file_name: str | None = None


class Reranker(Protocol):
    def rerank(self, query: str, candidates: Sequence[Candidate]) -> list[Candidate]:
        """Return the candidates rescored and sorted best first."""


class NoopReranker:
    """Keeps the vector-similarity order."""

    def rerank(self, query: str, candidates: Sequence[Candidate]) -> list[Candidate]:
        return sorted(candidates, key=lambda candidate: candidate.score, reverse=True)


class LexicalReranker:
    """Blends vector similarity with query/chunk token overlap."""

    def __init__(self, weight: float = 0.35) -> None:
        self._weight = _clamp(weight)

    def rerank(self, query: str, candidates: Sequence[Candidate]) -> list[Candidate]:
        tokens = set(query.lower().split())
        rescored = [
            Candidate(
                text=candidate.text,
                score=(1.0 - self._weight) * candidate.score
                + self._weight * _token_overlap_score(tokens, candidate.text),
                file_name=candidate.file_name,
            )
            for candidate in candidates
        ]
        rescored.sort(key=lambda candidate: candidate.score, reverse=True)
        return rescored


class CrossEncoderReranker:
    """Scores (query, chunk) pairs with a sentence-transformers cross-encoder."""

    def __init__(self, model: str, device: str | None = None) -> None:
        from sentence_transformers import CrossEncoder

        self._encoder = CrossEncoder(model, device=device)

    def rerank(self, query: str, candidates: Sequence[Candidate]) -> list[Candidate]:
        if not candidates:
            return []
        scores = self._encoder.predict([(query, candidate.text) for candidate in candidates])
        rescored = [
            Candidate(text=candidate.text, score=float(score), file_name=candidate.file_name)
            for candidate, score in zip(candidates, scores, strict=True)
        ]
        rescored.sort(key=lambda candidate: candidate.score, reverse=True)
        return rescored


def build_reranker(strategy: str, *, lexical_weight: float, model: str, device: str | None) -> Reranker:
    if strategy == "cross_encoder":
        return CrossEncoderReranker(model, device=device)
    if strategy == "lexical":
        return LexicalReranker(lexical_weight)
    return NoopReranker()


def _clamp(weight: float) -> float:
    if weight < 0.0:
        return 0.0
    if weight > 1.0:
        return 1.0
    return weight


def _token_overlap_score(query_tokens: set[str], text: str) -> float:
    tokens = set(text.lower().split())
    if not tokens:
        return 0.0
    overlap = len(query_tokens.intersection(tokens))
    return overlap / max(len(query_tokens), 1)
