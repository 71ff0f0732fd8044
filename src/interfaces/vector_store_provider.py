"""Abstract base class for vector-store service providers.

Defines the contract for persisting embedded chunks and running similarity
queries over them.  Implementations may wrap ChromaDB, an in-process numpy
index, or any other nearest-neighbour store.  Chunks are append-only: there
is no update path.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.models.rag import DocumentChunk, RetrievedContext


# Concrete implementations (src/providers/vector_store/):
#   ChromaDBProvider        — persistent, cosine HNSW index
#   InMemoryVectorStore     — numpy brute force, process-local
class IVectorStoreProvider(ABC):
    """Contract for vector stores used by the ingestion and query pipelines.

    All I/O methods are async so network-backed stores do not block the
    event loop.
    """

    @abstractmethod
    async def add_chunks(self, chunks: list[DocumentChunk]) -> int:
        """Persist embedded chunks.

        Returns
        -------
        int
            Number of chunks stored.

        Raises
        ------
        ValueError
            If a chunk's vector length differs from the store's dimension.
        src.utils.errors.VectorStoreError
            If the write fails.  Chunks committed by earlier calls are
            unaffected.
        """

    @abstractmethod
    async def similarity_search(
        self,
        query_vector: list[float],
        num_candidates: int,
        limit: int,
    ) -> list[RetrievedContext]:
        """Return up to *limit* chunks most similar to *query_vector*.

        Parameters
        ----------
        query_vector:
            Embedding of the question.
        num_candidates:
            Size of the candidate pool the index considers before ranking
            (stores with exact search may ignore it).
        limit:
            Maximum number of results.

        Returns
        -------
        list[RetrievedContext]
            Matches ordered by descending ``score``.
        """

    @abstractmethod
    async def count(self) -> int:
        """Return the number of stored chunks."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"chromadb"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the store is reachable."""
