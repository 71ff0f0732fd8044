"""Process-local vector store backed by a numpy matrix.

Exact cosine search over every stored vector.  Nothing is persisted, so it
suits tests, the CLI's throwaway runs, and deployments without ChromaDB.
"""

from __future__ import annotations

import numpy as np
import structlog

from src.interfaces.vector_store_provider import IVectorStoreProvider
from src.models.rag import DocumentChunk, RetrievedContext
from src.utils.errors import VectorStoreError

logger = structlog.get_logger(logger_name=__name__)


class InMemoryVectorStore(IVectorStoreProvider):
    """Brute-force cosine index held in memory."""

    def __init__(self, dimension: int) -> None:
        self._dimension = dimension
        self._chunks: list[DocumentChunk] = []
        self._matrix = np.zeros((0, dimension), dtype=np.float32)

    async def add_chunks(self, chunks: list[DocumentChunk]) -> int:
        if not chunks:
            return 0

        for chunk in chunks:
            if len(chunk.vector) != self._dimension:
                raise VectorStoreError(
                    message=(
                        f"chunk {chunk.chunk_id} has {len(chunk.vector)}-dim vector, "
                        f"store expects {self._dimension}"
                    ),
                    provider_name=self.get_provider_name(),
                )

        rows = np.asarray([c.vector for c in chunks], dtype=np.float32)
        self._matrix = np.vstack([self._matrix, rows])
        self._chunks.extend(chunks)
        logger.info("memory_store_add_chunks", count=len(chunks), total=len(self._chunks))
        return len(chunks)

    async def similarity_search(
        self,
        query_vector: list[float],
        num_candidates: int,
        limit: int,
    ) -> list[RetrievedContext]:
        if not self._chunks or limit <= 0:
            return []

        query = np.asarray(query_vector, dtype=np.float32)
        norms = np.linalg.norm(self._matrix, axis=1) * np.linalg.norm(query)
        dots = self._matrix @ query
        # Zero vectors (failed embeddings) score 0 instead of NaN.
        scores = np.divide(dots, norms, out=np.zeros_like(dots), where=norms > 0)

        # Stable sort keeps insertion order among equal scores.
        order = np.argsort(-scores, kind="stable")[:limit]
        return [
            RetrievedContext(
                text=self._chunks[i].text,
                source=self._chunks[i].source,
                page=self._chunks[i].page,
                type=self._chunks[i].type,
                score=float(scores[i]),
                metadata=dict(self._chunks[i].metadata),
                doc_id=self._chunks[i].doc_id,
            )
            for i in order
        ]

    async def count(self) -> int:
        return len(self._chunks)

    def get_provider_name(self) -> str:
        return "memory"

    def is_available(self) -> bool:
        return True
