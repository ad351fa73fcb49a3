from __future__ import annotations

import pytest

from docchat.text import preprocess


def test_collapses_newlines_and_spaces():
    assert preprocess("a\n\n  b") == "a b"


def test_trims_and_handles_tabs():
    assert preprocess("\t  Open 9-5\r\nMon-Fri  ") == "Open 9-5 Mon-Fri"


def test_empty_and_blank():
    assert preprocess("") == ""
    assert preprocess(" \n\t ") == ""


@pytest.mark.parametrize("raw", ["a  b", "  lead", "trail\n\n", "x\t\ty\nz", "already clean"])
def test_idempotent(raw: str):
    once = preprocess(raw)
    assert preprocess(once) == once
