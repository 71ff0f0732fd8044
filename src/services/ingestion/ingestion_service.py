"""Orchestrator for the document ingestion pipeline.

Pipeline stages: **chunk -> filter -> embed -> store**.

The :class:`IngestionService` coordinates three collaborators (chunker,
embedding provider, vector store) without any of them knowing about each
other.  Every public ``ingest_*`` method converges on the same tail:

    1. TextChunker -- splits each extracted segment into word windows
       (or header-prefixed row groups for tables)
    2. Meaningful-chunk filter -- drops fragments that are too short or
       carry no letters (OCR noise, page numbers, ruler lines)
    3. IEmbeddingProvider -- one vector per surviving chunk, same order
    4. IVectorStoreProvider -- persists the embedded chunks under one doc id

Text extraction (OCR, PDF text layers, image preprocessing) happens before
this service is called; it only ever sees plain strings.
"""

from __future__ import annotations

import asyncio
import re
import time
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

from src.models.rag import (
    BatchIngestionResult,
    ChunkDraft,
    ContentType,
    DocumentChunk,
    ExtractedText,
    FailedDocument,
    IngestionResult,
    SegmentKind,
    SourceDocument,
)
from src.pipeline.progress_tracker import ProgressReporter
from src.services.ingestion.chunker import TextChunker
from src.utils.errors import EmbeddingError, IngestionTimeoutError

if TYPE_CHECKING:
    from src.interfaces.embedding_provider import IEmbeddingProvider
    from src.interfaces.vector_store_provider import IVectorStoreProvider

logger = structlog.get_logger(logger_name=__name__)

_HAS_LETTER = re.compile(r"[A-Za-z]")

# Keyword sets for typing OCR output, checked in this order.
_CHART_WORDS = ("figure", "chart", "axis", "x-axis", "y-axis", "legend", "graph", "plot", "data", "trend")
_CERTIFICATE_WORDS = (
    "certificate",
    "certification",
    "awarded",
    "presented",
    "issued",
    "diploma",
    "achievement",
)
_TABLE_WORDS = ("table", "row", "column", "header", "total", "sum")

# OCR segments this short are scanner noise.
_MIN_OCR_CHARS = 5
# Chunks must be longer than this after trimming to be worth embedding.
_MIN_CHUNK_CHARS = 10


def is_meaningful(text: str) -> bool:
    """Return ``True`` if *text* is long enough and contains a letter."""
    stripped = text.strip()
    return len(stripped) > _MIN_CHUNK_CHARS and bool(_HAS_LETTER.search(stripped))


def classify_ocr_text(text: str) -> ContentType:
    """Pick the content type for a block of OCR output from its vocabulary."""
    lowered = text.lower()
    if any(word in lowered for word in _CHART_WORDS):
        return ContentType.CHART_OCR
    if any(word in lowered for word in _CERTIFICATE_WORDS):
        return ContentType.CERTIFICATE_OCR
    if any(word in lowered for word in _TABLE_WORDS):
        return ContentType.TABLE_OCR
    return ContentType.IMAGE_OCR


def make_doc_id(source: str) -> str:
    """Build a document id of the form ``<epoch-millis>-<basename>``."""
    return f"{int(time.time() * 1000)}-{Path(source).name}"


class IngestionService:
    """Orchestrates chunk -> filter -> embed -> store for extracted text.

    All dependencies are injected via the constructor so providers can be
    swapped (fastembed or sentence-transformers, ChromaDB or in-memory)
    without changing this class.

    Parameters
    ----------
    chunker:
        Splits raw text into overlapping word windows.
    embedding_provider:
        Generates embedding vectors for chunk text.
    vector_store:
        Persists embedded chunks for semantic retrieval.
    file_timeout:
        Seconds one document may take inside :meth:`ingest_batch`.
    """

    def __init__(
        self,
        chunker: TextChunker,
        embedding_provider: IEmbeddingProvider,
        vector_store: IVectorStoreProvider,
        file_timeout: float = 300.0,
    ) -> None:
        self._chunker = chunker
        self._embedding_provider = embedding_provider
        self._vector_store = vector_store
        self._file_timeout = file_timeout

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def ingest_text(
        self,
        text: str,
        source: str,
        page: int | None = None,
        content_type: ContentType = ContentType.TEXT,
        doc_id: str | None = None,
        progress: ProgressReporter | None = None,
    ) -> IngestionResult:
        """Chunk, embed and store one block of plain text.

        Returns an :class:`IngestionResult` with ``count == 0`` when nothing
        meaningful survives chunking; that is not an error.
        """
        start = time.monotonic()
        drafts = self._chunker.chunk(text, source=source, page=page, content_type=content_type)
        return await self._filter_embed_store(
            drafts,
            doc_id=doc_id or make_doc_id(source),
            source=source,
            start=start,
            progress=progress or ProgressReporter(),
        )

    async def ingest_table(
        self,
        csv_text: str,
        source: str,
        page: int | None = None,
        doc_id: str | None = None,
        progress: ProgressReporter | None = None,
    ) -> IngestionResult:
        """Ingest delimited table text as header-prefixed row groups."""
        start = time.monotonic()
        drafts = self._chunker.chunk_table(csv_text, source=source, page=page)
        return await self._filter_embed_store(
            drafts,
            doc_id=doc_id or make_doc_id(source),
            source=source,
            start=start,
            progress=progress or ProgressReporter(),
        )

    async def ingest_document(
        self,
        document: SourceDocument,
        progress: ProgressReporter | None = None,
    ) -> IngestionResult:
        """Ingest every extracted segment of one file under a single doc id.

        Segments are chunked in order; all surviving chunks are embedded in
        one batch and persisted together.
        """
        start = time.monotonic()
        doc_id = document.doc_id or make_doc_id(document.source)

        drafts: list[ChunkDraft] = []
        for segment in document.segments:
            drafts.extend(self._chunk_segment(segment))

        return await self._filter_embed_store(
            drafts,
            doc_id=doc_id,
            source=document.source,
            start=start,
            progress=progress or ProgressReporter(),
        )

    async def ingest_batch(
        self,
        documents: list[SourceDocument],
        progress: ProgressReporter | None = None,
    ) -> BatchIngestionResult:
        """Ingest several documents strictly one after another.

        Each document runs under ``asyncio.wait_for`` with the per-file
        timeout.  A timed-out document is recorded in ``failed`` and the
        job moves on; documents already ingested stay persisted.  Any other
        exception propagates and ends the job.
        """
        progress = progress or ProgressReporter()
        ingested: list[IngestionResult] = []
        failed: list[FailedDocument] = []

        for position, document in enumerate(documents, start=1):
            doc_id = document.doc_id or make_doc_id(document.source)
            await progress.processing(
                "file",
                f"Processing {document.source} ({position}/{len(documents)})",
            )
            try:
                result = await self._ingest_with_timeout(
                    document.model_copy(update={"doc_id": doc_id}),
                    progress,
                )
            except IngestionTimeoutError as exc:
                logger.warning(
                    "ingest_file_timeout",
                    doc_id=doc_id,
                    source=document.source,
                    timeout_s=self._file_timeout,
                )
                await progress.error("file", f"{document.source}: {exc.message}")
                failed.append(
                    FailedDocument(doc_id=doc_id, source=document.source, reason=exc.message)
                )
                continue

            ingested.append(result)

        batch = BatchIngestionResult(ingested=ingested, failed=failed)
        logger.info(
            "ingest_batch_complete",
            documents=len(documents),
            ingested=len(ingested),
            failed=len(failed),
            total_chunks=batch.total_chunks,
        )
        await progress.complete(
            "batch",
            f"Ingested {len(ingested)} of {len(documents)} files ({batch.total_chunks} chunks)",
        )
        return batch

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _ingest_with_timeout(
        self,
        document: SourceDocument,
        progress: ProgressReporter,
    ) -> IngestionResult:
        try:
            return await asyncio.wait_for(
                self.ingest_document(document, progress),
                timeout=self._file_timeout,
            )
        except asyncio.TimeoutError as exc:
            raise IngestionTimeoutError(
                message=f"Processing timed out after {self._file_timeout:g}s",
            ) from exc

    def _chunk_segment(self, segment: ExtractedText) -> list[ChunkDraft]:
        if segment.kind is SegmentKind.TABLE:
            return self._chunker.chunk_table(segment.text, source=segment.source, page=segment.page)

        if segment.kind is SegmentKind.OCR:
            if len(segment.text.strip()) <= _MIN_OCR_CHARS:
                logger.debug("ocr_segment_skipped", source=segment.source, page=segment.page)
                return []
            content_type = classify_ocr_text(segment.text)
        else:
            content_type = ContentType.TEXT

        return self._chunker.chunk(
            segment.text,
            source=segment.source,
            page=segment.page,
            content_type=content_type,
        )

    async def _filter_embed_store(
        self,
        drafts: list[ChunkDraft],
        doc_id: str,
        source: str,
        start: float,
        progress: ProgressReporter,
    ) -> IngestionResult:
        """Shared tail of every ``ingest_*`` method."""
        meaningful = [d for d in drafts if is_meaningful(d.text)]
        logger.info(
            "chunking_complete",
            doc_id=doc_id,
            drafts=len(drafts),
            meaningful=len(meaningful),
        )
        await progress.info("chunking", f"Created {len(meaningful)} chunks from {source}")

        if not meaningful:
            return IngestionResult(doc_id=doc_id, source=source, count=0, ingestion_time=0.0)

        vectors = await self._embedding_provider.embed([d.text for d in meaningful], progress)
        if len(vectors) != len(meaningful):
            raise EmbeddingError(
                message=f"Embedding returned {len(vectors)} vectors for {len(meaningful)} chunks",
                provider_name=self._embedding_provider.get_provider_name(),
            )

        chunks = [
            DocumentChunk.from_draft(draft, doc_id=doc_id, vector=vector)
            for draft, vector in zip(meaningful, vectors, strict=True)
        ]
        stored = await self._vector_store.add_chunks(chunks)

        result = IngestionResult(
            doc_id=doc_id,
            source=source,
            count=stored,
            ingestion_time=round(time.monotonic() - start, 2),
        )
        logger.info(
            "ingestion_complete",
            doc_id=doc_id,
            source=source,
            chunks=stored,
            time_s=result.ingestion_time,
        )
        await progress.success(
            "ingest",
            f"Indexed {stored} chunks ({self._embedding_provider.get_dimension()}-dim vectors)",
        )
        return result
