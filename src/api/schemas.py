"""Pydantic request/response schemas for the document Q&A API.

Defines the public contract for the REST endpoints: question answering,
text/table/batch ingestion, progress polling and health.

FastAPI uses these models to validate incoming JSON (invalid bodies get a
422), to serialise responses (``response_model=...``) and to generate the
OpenAPI docs.  Request schemas end with "Request", response schemas with
"Response".
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from src.models.progress import ProgressEvent
from src.models.rag import ContentType, FailedDocument, IngestionResult


class QueryRequest(BaseModel):
    """A natural-language question about the indexed documents."""

    question: str = Field(..., min_length=1, max_length=2000)
    top_k: int = Field(default=5, ge=1, le=50)
    source_filter: str | None = Field(
        default=None,
        description="Case-insensitive regex matched against each context's source.",
    )
    session_id: str | None = None


class ContextResponse(BaseModel):
    """One retrieved chunk as returned to the client."""

    text: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    source: str
    page: int | None = None
    type: str
    score: float


class QueryResponse(BaseModel):
    answer: str
    contexts: list[ContextResponse] = Field(default_factory=list)


class IngestTextRequest(BaseModel):
    """Plain extracted text to chunk, embed and index."""

    text: str = Field(..., min_length=1)
    source: str = Field(..., min_length=1)
    page: int | None = Field(default=None, ge=0)
    content_type: ContentType = ContentType.TEXT
    doc_id: str | None = None
    session_id: str | None = None


class IngestTableRequest(BaseModel):
    """Delimited table text; the first line is the header row."""

    csv_text: str = Field(..., min_length=1)
    source: str = Field(..., min_length=1)
    page: int | None = Field(default=None, ge=0)
    doc_id: str | None = None
    session_id: str | None = None


class SegmentInput(BaseModel):
    text: str
    page: int | None = Field(default=None, ge=0)
    kind: str = Field(default="text", pattern="^(text|table|ocr)$")


class DocumentInput(BaseModel):
    """All extracted segments of one file."""

    source: str = Field(..., min_length=1)
    segments: list[SegmentInput] = Field(default_factory=list)
    doc_id: str | None = None


class IngestBatchRequest(BaseModel):
    documents: list[DocumentInput] = Field(..., min_length=1)
    session_id: str | None = None


class IngestResponse(BaseModel):
    doc_id: str
    source: str
    count: int
    ingestion_time: float = 0.0


class IngestBatchResponse(BaseModel):
    ingested: list[IngestionResult] = Field(default_factory=list)
    failed: list[FailedDocument] = Field(default_factory=list)
    total_chunks: int = 0


class ProgressResponse(BaseModel):
    session_id: str
    events: list[ProgressEvent] = Field(default_factory=list)


class HealthResponse(BaseModel):
    """Application health check response."""

    status: str
    version: str
    providers: dict[str, Any]


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    detail: str | None = None
