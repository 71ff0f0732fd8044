"""RAG data models for the document Q&A service.

Defines Pydantic v2 models for chunk drafts, stored chunks, retrieved
contexts, extracted source segments, and pipeline results.  Stored models
use frozen config: chunks are created at ingestion and never updated.

Lifecycle of a piece of text:

    1. EXTRACTION: an external OCR/PDF collaborator yields
       :class:`ExtractedText` segments (text, source, page, kind hint).
    2. CHUNKING: ``TextChunker`` turns each segment into
       :class:`ChunkDraft` windows.
    3. EMBEDDING: every surviving draft gets a vector and becomes a
       :class:`DocumentChunk` bound to one ``doc_id``.
    4. RETRIEVAL: the vector store returns :class:`RetrievedContext`
       objects (chunk fields plus a similarity ``score``), which live only
       for the duration of one query.
"""

from __future__ import annotations

import uuid
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ContentType(str, Enum):  # noqa: UP042 — StrEnum requires Python 3.11+
    """Where a chunk's text came from."""

    TEXT = "text"
    TABLE = "table"
    IMAGE_OCR = "image_ocr"
    CHART_OCR = "chart_ocr"
    CERTIFICATE_OCR = "certificate_ocr"
    TABLE_OCR = "table_ocr"


class DocumentType(str, Enum):  # noqa: UP042
    """Coarse, keyword-derived label for a set of retrieved contexts."""

    CERTIFICATE = "certificate"
    FINANCIAL = "financial"
    RESUME = "resume"
    CHART = "chart"
    REPORT = "report"
    GENERAL = "general"


class SegmentKind(str, Enum):  # noqa: UP042
    """Hint supplied by the text-extraction collaborator for one segment."""

    TEXT = "text"
    TABLE = "table"
    OCR = "ocr"


# ---------------------------------------------------------------------------
# Ingestion-side models
# ---------------------------------------------------------------------------
class ExtractedText(BaseModel):
    """One segment of text produced by the external extraction collaborator.

    A single file usually yields several segments: the whole-document text
    layer (``page=None``) plus one OCR segment per rendered page.
    """

    model_config = ConfigDict(frozen=True)

    text: str
    source: str
    page: int | None = None
    kind: SegmentKind = SegmentKind.TEXT


class SourceDocument(BaseModel):
    """All extracted segments of one uploaded file, ingested under one ``doc_id``."""

    model_config = ConfigDict(frozen=True)

    source: str
    segments: list[ExtractedText] = Field(default_factory=list)
    doc_id: str | None = None


class ChunkDraft(BaseModel):
    """A chunk before embedding: text plus provenance, no vector yet."""

    model_config = ConfigDict(frozen=True)

    source: str
    page: int | None = None
    type: ContentType = ContentType.TEXT
    text: str
    metadata: dict[str, Any] = Field(default_factory=dict)


class DocumentChunk(BaseModel):
    """A persisted chunk: one embedding vector, one document, at most one page.

    ``vector`` length equals the store-wide dimension D; the vector store
    rejects chunks that disagree.
    """

    model_config = ConfigDict(frozen=True)

    chunk_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    doc_id: str
    source: str
    page: int | None = None
    type: ContentType = ContentType.TEXT
    text: str = Field(min_length=1)
    vector: list[float]
    metadata: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_draft(cls, draft: ChunkDraft, doc_id: str, vector: list[float]) -> DocumentChunk:
        """Bind a draft to its document and embedding vector."""
        return cls(doc_id=doc_id, vector=vector, **draft.model_dump())


class IngestionResult(BaseModel):
    """Outcome of ingesting one document."""

    model_config = ConfigDict(frozen=True)

    doc_id: str
    source: str = ""
    count: int = Field(default=0, ge=0, description="Chunks embedded and persisted.")
    ingestion_time: float = Field(default=0.0, ge=0.0)


class FailedDocument(BaseModel):
    """A document that a batch job skipped (e.g. it timed out)."""

    model_config = ConfigDict(frozen=True)

    doc_id: str
    source: str
    reason: str


class BatchIngestionResult(BaseModel):
    """Outcome of a sequential multi-document ingestion job."""

    model_config = ConfigDict(frozen=True)

    ingested: list[IngestionResult] = Field(default_factory=list)
    failed: list[FailedDocument] = Field(default_factory=list)

    @property
    def total_chunks(self) -> int:
        return sum(result.count for result in self.ingested)


# ---------------------------------------------------------------------------
# Query-side models
# ---------------------------------------------------------------------------
class RetrievedContext(BaseModel):
    """A chunk returned by a similarity query, with its score.

    Higher ``score`` means more similar.  Never persisted.
    """

    model_config = ConfigDict(frozen=True)

    text: str
    source: str
    page: int | None = None
    type: ContentType = ContentType.TEXT
    score: float = 0.0
    metadata: dict[str, Any] = Field(default_factory=dict)
    doc_id: str = ""


class QueryResult(BaseModel):
    """Answer plus the full, ungrouped list of contexts it was built from."""

    model_config = ConfigDict(frozen=True)

    answer: str
    contexts: list[RetrievedContext] = Field(default_factory=list)
