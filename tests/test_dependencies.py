from __future__ import annotations

from pathlib import Path

import pytest

from docchat.cli import _expand_paths, build_parser
from docchat.config import Settings
from docchat.dependencies import build_dependencies
from docchat.errors import ConfigurationError


def test_build_dependencies_requires_a_model_key(tmp_path: Path) -> None:
    settings = Settings(environment="test", chroma_persist_dir=tmp_path / "chroma")
    with pytest.raises(ConfigurationError):
        build_dependencies(settings)


def test_build_dependencies_wires_local_index(tmp_path: Path) -> None:
    settings = Settings(
        environment="test",
        chroma_persist_dir=tmp_path / "chroma",
        llm_primary_api_key="primary",
        llm_secondary_api_key="secondary",
    )
    deps = build_dependencies(settings)
    assert deps.index.count() == 0
    assert deps.model_client is not None
    record = deps.documents.upload("hours.txt", "Open 9-5 Mon-Fri. Closed weekends.")
    assert deps.index.count() == record["record_count"] == 1


def test_cli_parser_and_directory_expansion(tmp_path: Path) -> None:
    (tmp_path / "b.txt").write_text("b", encoding="utf-8")
    (tmp_path / "a.txt").write_text("a", encoding="utf-8")
    (tmp_path / "skip.md").write_text("c", encoding="utf-8")
    extra = tmp_path / "single.txt"

    assert _expand_paths([tmp_path, extra]) == [tmp_path / "a.txt", tmp_path / "b.txt", extra]
    args = build_parser().parse_args(["ask", "What are your hours?"])
    assert args.command == "ask"
    assert args.question == "What are your hours?"
