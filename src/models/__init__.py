"""Domain models — re-exports all public model classes.

    - rag.py       — chunks, retrieved contexts, ingestion and query results
    - progress.py  — progress event vocabulary
"""

from __future__ import annotations

from src.models.progress import ProgressEvent, ProgressEventType
from src.models.rag import (
    BatchIngestionResult,
    ChunkDraft,
    ContentType,
    DocumentChunk,
    DocumentType,
    ExtractedText,
    FailedDocument,
    IngestionResult,
    QueryResult,
    RetrievedContext,
    SegmentKind,
    SourceDocument,
)

__all__ = [
    "BatchIngestionResult",
    "ChunkDraft",
    "ContentType",
    "DocumentChunk",
    "DocumentType",
    "ExtractedText",
    "FailedDocument",
    "IngestionResult",
    "ProgressEvent",
    "ProgressEventType",
    "QueryResult",
    "RetrievedContext",
    "SegmentKind",
    "SourceDocument",
]
