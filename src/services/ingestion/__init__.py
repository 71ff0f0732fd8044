"""Document ingestion pipeline for the document Q&A knowledge base.

Orchestrates the pipeline: **chunk -> filter -> embed -> store**.

1. **Chunk** (chunker.py / TextChunker) -- splits extracted text into
   overlapping word windows, or tables into header-prefixed row groups.

2. **Filter** (ingestion_service.is_meaningful) -- drops fragments too
   short or too symbol-heavy to be worth a vector.

3. **Embed** (via IEmbeddingProvider) -- one dense vector per chunk, in
   the same order as the chunks.

4. **Store** (via IVectorStoreProvider) -- persists embedded chunks for
   semantic similarity search.

The IngestionService class exposes ingest_text, ingest_table,
ingest_document (multi-segment files) and ingest_batch (sequential jobs
with a per-file timeout).
"""

from src.services.ingestion.chunker import TextChunker
from src.services.ingestion.ingestion_service import (
    IngestionService,
    classify_ocr_text,
    is_meaningful,
    make_doc_id,
)

__all__ = [
    "IngestionService",
    "TextChunker",
    "classify_ocr_text",
    "is_meaningful",
    "make_doc_id",
]
