# =============================================================================
# src/cli/ingest.py — CLI for indexing documents and asking questions
# =============================================================================
#
# Standalone CLI over the same ingestion and query services the API uses.
# Text extraction (OCR, PDF rendering) happens elsewhere; this tool indexes
# files that already hold plain text (.txt) or delimited tables (.csv).
#
# Supported subcommands:
#
#   text      — Ingest a plain-text file
#   table     — Ingest a CSV/TSV file (first line is the header)
#   directory — Ingest every .txt/.csv file in a directory, one at a time
#   query     — Ask a question against the indexed corpus
#   stats     — Show the embedding model and the number of stored chunks
#
# Usage examples:
#   python -m src.cli.ingest text --file ./scans/certificate.txt
#   python -m src.cli.ingest table --file ./exports/sales.csv
#   python -m src.cli.ingest directory --path ./scans
#   python -m src.cli.ingest query "Who received this certificate?"
#   python -m src.cli.ingest stats
# =============================================================================

"""Standalone CLI for building and querying the document vector store.

Usage::

    python -m src.cli.ingest text --file /path/to/doc.txt
    python -m src.cli.ingest directory --path /path/to/docs/
    python -m src.cli.ingest query "What is this document about?" --top-k 5
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any

from src.config.settings import Settings
from src.models.progress import ProgressEvent
from src.models.rag import ExtractedText, SegmentKind, SourceDocument
from src.pipeline.progress_tracker import ProgressReporter
from src.utils.errors import DocRAGError

_TEXT_SUFFIXES = frozenset({".txt", ".md"})
_TABLE_SUFFIXES = frozenset({".csv", ".tsv"})


def _print_event(event: ProgressEvent) -> None:
    print(f"  [{event.type.value:<10}] {event.label}: {event.message}")


def _build_services(app_settings: Settings) -> dict[str, Any]:
    # Deferred: importing the app module constructs the FastAPI app.
    from src.main import _build_all

    return _build_all(app_settings)


def _read(path: Path) -> str:
    return path.read_text(encoding="utf-8", errors="replace")


def _document_for(path: Path) -> SourceDocument:
    kind = SegmentKind.TABLE if path.suffix.lower() in _TABLE_SUFFIXES else SegmentKind.TEXT
    return SourceDocument(
        source=str(path),
        segments=[ExtractedText(text=_read(path), source=str(path), kind=kind)],
    )


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


async def _handle_text(args: argparse.Namespace, services: dict[str, Any]) -> int:
    path = Path(args.file)
    print(f"Ingesting text: {path}")
    result = await services["ingestion_service"].ingest_text(
        _read(path),
        source=args.source or str(path),
        page=args.page,
        progress=ProgressReporter(_print_event),
    )
    print("\nIngestion complete:")
    print(f"  Doc ID:         {result.doc_id}")
    print(f"  Chunks created: {result.count}")
    print(f"  Time:           {result.ingestion_time:.2f}s")
    return 0


async def _handle_table(args: argparse.Namespace, services: dict[str, Any]) -> int:
    path = Path(args.file)
    print(f"Ingesting table: {path}")
    result = await services["ingestion_service"].ingest_table(
        _read(path),
        source=args.source or str(path),
        progress=ProgressReporter(_print_event),
    )
    print("\nIngestion complete:")
    print(f"  Doc ID:         {result.doc_id}")
    print(f"  Chunks created: {result.count}")
    return 0


async def _handle_directory(args: argparse.Namespace, services: dict[str, Any]) -> int:
    root = Path(args.path)
    if not root.is_dir():
        print(f"Error: {root} is not a directory", file=sys.stderr)
        return 1

    files = sorted(
        p for p in root.iterdir() if p.is_file() and p.suffix.lower() in _TEXT_SUFFIXES | _TABLE_SUFFIXES
    )
    print(f"Ingesting directory: {root} ({len(files)} files)")
    result = await services["ingestion_service"].ingest_batch(
        [_document_for(p) for p in files],
        progress=ProgressReporter(_print_event),
    )

    print("\nDirectory ingestion complete:")
    print(f"  Files ingested: {len(result.ingested)}")
    print(f"  Files failed:   {len(result.failed)}")
    print(f"  Total chunks:   {result.total_chunks}")
    for failure in result.failed:
        print(f"    {failure.source}: {failure.reason}")
    return 0 if not result.failed else 2


async def _handle_query(args: argparse.Namespace, services: dict[str, Any]) -> int:
    result = await services["query_service"].query(
        args.question,
        top_k=args.top_k,
        source_filter=args.source_filter,
    )
    print(result.answer)
    if args.show_contexts:
        print("\nContexts:")
        for ctx in result.contexts:
            page = f" p.{ctx.page}" if ctx.page is not None else ""
            print(f"  {ctx.score:.3f}  {Path(ctx.source).name}{page}  [{ctx.type.value}]")
    return 0


async def _handle_stats(services: dict[str, Any]) -> int:
    embedding = services["embedding_provider"]
    store = services["vector_store"]
    count = await store.count()

    print("Corpus Statistics")
    print("=" * 40)
    print(f"  Vector store:     {store.get_provider_name()}")
    print(f"  Total chunks:     {count}")
    print("\n  Embedding model:")
    for key, value in embedding.describe().items():
        print(f"    {key:<12} {value}")
    return 0


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m src.cli.ingest",
        description="Index extracted documents and ask questions about them.",
    )
    subparsers = parser.add_subparsers(dest="command")

    text_parser = subparsers.add_parser("text", help="Ingest a plain-text file")
    text_parser.add_argument("--file", required=True, help="Path to the text file")
    text_parser.add_argument("--source", help="Source name stored with each chunk")
    text_parser.add_argument("--page", type=int, help="Page number of the text")

    table_parser = subparsers.add_parser("table", help="Ingest a delimited table file")
    table_parser.add_argument("--file", required=True, help="Path to the CSV/TSV file")
    table_parser.add_argument("--source", help="Source name stored with each chunk")

    dir_parser = subparsers.add_parser("directory", help="Ingest all .txt/.csv files in a directory")
    dir_parser.add_argument("--path", required=True, help="Directory to scan (non-recursive)")

    query_parser = subparsers.add_parser("query", help="Ask a question")
    query_parser.add_argument("question", help="Natural-language question")
    query_parser.add_argument("--top-k", type=int, default=None, help="Contexts to retrieve")
    query_parser.add_argument("--source-filter", help="Regex matched against chunk sources")
    query_parser.add_argument(
        "--show-contexts",
        action="store_true",
        help="Print the retrieved contexts after the answer",
    )

    subparsers.add_parser("stats", help="Show vector store statistics")
    return parser


def main() -> None:
    """CLI entry point: parse the subcommand and dispatch to its handler."""
    parser = _build_parser()
    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    services = _build_services(Settings())

    handlers = {
        "text": lambda: _handle_text(args, services),
        "table": lambda: _handle_table(args, services),
        "directory": lambda: _handle_directory(args, services),
        "query": lambda: _handle_query(args, services),
        "stats": lambda: _handle_stats(services),
    }

    try:
        exit_code = asyncio.run(handlers[args.command]())
    except DocRAGError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        exit_code = 1

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
