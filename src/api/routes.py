"""FastAPI API routes for the document Q&A service.

Endpoint                          Method  Description
──────────────────────────────────────────────────────────────────────
/api/v1/query                     POST    Answer a question from indexed chunks
/api/v1/ingest                    POST    Chunk, embed and index extracted text
/api/v1/ingest/table              POST    Index delimited table text
/api/v1/ingest/batch              POST    Sequentially ingest several documents
/api/v1/progress/{session_id}     GET     Events recorded for a session
/api/v1/health                    GET     Health check + provider status

Service dependencies are resolved from ``app.state`` (populated at startup
in main.py's ``_build_all``) via FastAPI's ``Depends`` using the
``Annotated`` pattern.  Passing a ``session_id`` in a request body routes
that request's progress events to the tracker, where the WebSocket and
the progress endpoint can pick them up.
"""

from __future__ import annotations

from typing import Annotated, Any

import structlog
from fastapi import APIRouter, Depends, Request

from src.api.schemas import (
    ContextResponse,
    ErrorResponse,
    HealthResponse,
    IngestBatchRequest,
    IngestBatchResponse,
    IngestResponse,
    IngestTableRequest,
    IngestTextRequest,
    ProgressResponse,
    QueryRequest,
    QueryResponse,
)
from src.interfaces.embedding_provider import IEmbeddingProvider
from src.interfaces.vector_store_provider import IVectorStoreProvider
from src.models.rag import ExtractedText, IngestionResult, SegmentKind, SourceDocument
from src.pipeline.progress_tracker import ProgressReporter, ProgressTracker
from src.services.ingestion.ingestion_service import IngestionService
from src.services.query_service import QueryService
from src.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

router = APIRouter(prefix="/api/v1")


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


def _get_query_service(request: Request) -> QueryService:
    return request.app.state.query_service


def _get_ingestion_service(request: Request) -> IngestionService:
    return request.app.state.ingestion_service


def _get_progress_tracker(request: Request) -> ProgressTracker:
    return request.app.state.progress_tracker


QueryServiceDep = Annotated[QueryService, Depends(_get_query_service)]
IngestionServiceDep = Annotated[IngestionService, Depends(_get_ingestion_service)]
TrackerDep = Annotated[ProgressTracker, Depends(_get_progress_tracker)]


def _reporter(tracker: ProgressTracker, session_id: str | None) -> ProgressReporter | None:
    return tracker.reporter(session_id) if session_id else None


def _ingest_response(result: IngestionResult) -> IngestResponse:
    return IngestResponse(
        doc_id=result.doc_id,
        source=result.source,
        count=result.count,
        ingestion_time=result.ingestion_time,
    )


# ---------------------------------------------------------------------------
# Query
# ---------------------------------------------------------------------------


@router.post(
    "/query",
    response_model=QueryResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    summary="Answer a question from the indexed documents",
)
async def query_documents(
    body: QueryRequest,
    query_service: QueryServiceDep,
    tracker: TrackerDep,
) -> QueryResponse:
    result = await query_service.query(
        body.question,
        top_k=body.top_k,
        source_filter=body.source_filter,
        progress=_reporter(tracker, body.session_id),
    )
    return QueryResponse(
        answer=result.answer,
        contexts=[
            ContextResponse(
                text=ctx.text,
                metadata=ctx.metadata,
                source=ctx.source,
                page=ctx.page,
                type=ctx.type.value,
                score=ctx.score,
            )
            for ctx in result.contexts
        ],
    )


# ---------------------------------------------------------------------------
# Ingestion
# ---------------------------------------------------------------------------


@router.post(
    "/ingest",
    response_model=IngestResponse,
    responses={500: {"model": ErrorResponse}},
    summary="Index a block of extracted text",
)
async def ingest_text(
    body: IngestTextRequest,
    ingestion_service: IngestionServiceDep,
    tracker: TrackerDep,
) -> IngestResponse:
    result = await ingestion_service.ingest_text(
        body.text,
        source=body.source,
        page=body.page,
        content_type=body.content_type,
        doc_id=body.doc_id,
        progress=_reporter(tracker, body.session_id),
    )
    return _ingest_response(result)


@router.post(
    "/ingest/table",
    response_model=IngestResponse,
    responses={500: {"model": ErrorResponse}},
    summary="Index delimited table text",
)
async def ingest_table(
    body: IngestTableRequest,
    ingestion_service: IngestionServiceDep,
    tracker: TrackerDep,
) -> IngestResponse:
    result = await ingestion_service.ingest_table(
        body.csv_text,
        source=body.source,
        page=body.page,
        doc_id=body.doc_id,
        progress=_reporter(tracker, body.session_id),
    )
    return _ingest_response(result)


@router.post(
    "/ingest/batch",
    response_model=IngestBatchResponse,
    responses={500: {"model": ErrorResponse}},
    summary="Ingest several documents one after another",
)
async def ingest_batch(
    body: IngestBatchRequest,
    ingestion_service: IngestionServiceDep,
    tracker: TrackerDep,
) -> IngestBatchResponse:
    documents = [
        SourceDocument(
            source=doc.source,
            doc_id=doc.doc_id,
            segments=[
                ExtractedText(
                    text=segment.text,
                    source=doc.source,
                    page=segment.page,
                    kind=SegmentKind(segment.kind),
                )
                for segment in doc.segments
            ],
        )
        for doc in body.documents
    ]
    result = await ingestion_service.ingest_batch(
        documents,
        progress=_reporter(tracker, body.session_id),
    )
    return IngestBatchResponse(
        ingested=result.ingested,
        failed=result.failed,
        total_chunks=result.total_chunks,
    )


# ---------------------------------------------------------------------------
# Progress & health
# ---------------------------------------------------------------------------


@router.get(
    "/progress/{session_id}",
    response_model=ProgressResponse,
    summary="Progress events recorded for a session",
)
async def get_progress(session_id: str, tracker: TrackerDep) -> ProgressResponse:
    return ProgressResponse(session_id=session_id, events=tracker.get_events(session_id))


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
)
async def health_check(request: Request) -> HealthResponse:
    """Return application health, version, and provider availability."""
    embedding: IEmbeddingProvider | None = getattr(request.app.state, "embedding_provider", None)
    vector_store: IVectorStoreProvider | None = getattr(request.app.state, "vector_store", None)

    providers: dict[str, Any] = {}
    if embedding is not None:
        providers["embedding"] = {
            "name": embedding.get_provider_name(),
            "available": embedding.is_available(),
            **embedding.describe(),
        }
    if vector_store is not None:
        providers["vector_store"] = {
            "name": vector_store.get_provider_name(),
            "available": vector_store.is_available(),
        }
        try:
            providers["chunks"] = await vector_store.count()
        except Exception as exc:
            _logger.warning("health_chunk_count_failed", error=str(exc))
            providers["chunks"] = 0

    healthy = bool(providers) and all(
        entry.get("available", False)
        for entry in providers.values()
        if isinstance(entry, dict)
    )

    return HealthResponse(
        status="healthy" if healthy else "degraded",
        version=getattr(request.app.state, "app_version", "0.1.0"),
        providers=providers,
    )
