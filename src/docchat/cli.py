"""Command-line entry points for loading documents and asking questions."""

from __future__ import annotations

import argparse
import asyncio
import sys
import time
from pathlib import Path
from typing import Iterable, Sequence
from uuid import uuid4

from docchat.config import get_settings
from docchat.dependencies import AppDependencies, build_dependencies
from docchat.errors import DocChatError
from docchat.ingestion import IngestionError
from docchat.metrics.observability import configure_logging
from docchat.models import ChatMessage, Sender


def _expand_paths(paths: Iterable[Path]) -> list[Path]:
    expanded: list[Path] = []
    for path in paths:
        if path.is_dir():
            expanded.extend(sorted(path.glob("*.txt")))
        else:
            expanded.append(path)
    return expanded


def _cmd_ingest(deps: AppDependencies, paths: Sequence[Path]) -> int:
    failures = 0
    for path in _expand_paths(paths):
        try:
            record = deps.documents.upload_path(path)
        except IngestionError as exc:
            print(f"skipped {path}: {exc}", file=sys.stderr)
            failures += 1
            continue
        print(f"{record['file_name']}: {record['record_count']} chunks ({record['doc_id']})")
    return 1 if failures else 0


async def _ask(deps: AppDependencies, question: str) -> str:
    history = [
        ChatMessage(id=uuid4().hex, sender=Sender.USER, text=question, timestamp=int(time.time() * 1000)),
    ]
    try:
        return await deps.orchestrator.answer(question, history)
    finally:
        if deps.model_client is not None:
            await deps.model_client.aclose()


def _cmd_ask(deps: AppDependencies, question: str) -> int:
    try:
        answer = asyncio.run(_ask(deps, question))
    except DocChatError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    print(answer)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="docchat", description="DocChat retrieval-augmented assistant")
    sub = parser.add_subparsers(dest="command", required=True)
    ingest = sub.add_parser("ingest", help="Load .txt files (or directories of them) into the index")
    ingest.add_argument("paths", nargs="+", type=Path)
    ask = sub.add_parser("ask", help="Answer one question against the indexed documents")
    ask.add_argument("question")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging()
    try:
        deps = build_dependencies(get_settings())
    except DocChatError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    if args.command == "ingest":
        return _cmd_ingest(deps, args.paths)
    return _cmd_ask(deps, args.question)


if __name__ == "__main__":
    raise SystemExit(main())
