"""Text normalisation shared by ingestion and search."""

from __future__ import annotations

import re

_WHITESPACE = re.compile(r"\s+")


def preprocess(text: str) -> str:
    """Collapse whitespace runs (newlines included) to one space and trim."""

    return _WHITESPACE.sub(" ", text).strip()
