"""ChromaDB vector store provider adapter.

Wraps `chromadb.PersistentClient` to implement :class:`IVectorStoreProvider`.
Uses cosine distance for similarity search.  Fully local and Python-native,
so no external service is required.
"""

from __future__ import annotations

import asyncio
import json
import os
from typing import Any

# ChromaDB reads this before the client is built; telemetry stays off.
os.environ["ANONYMIZED_TELEMETRY"] = "False"

import chromadb
import structlog

from src.interfaces.vector_store_provider import IVectorStoreProvider
from src.models.rag import ContentType, DocumentChunk, RetrievedContext
from src.utils.errors import VectorStoreError

logger = structlog.get_logger(logger_name=__name__)


class _NoopEmbeddingFunction(chromadb.EmbeddingFunction[list[str]]):
    """No-op embedding function that prevents ChromaDB from loading a model.

    Chunks always arrive with pre-computed vectors, so ChromaDB's built-in
    embedding is never invoked.  Without this, ChromaDB downloads its own
    default ONNX model on collection creation.
    """

    def __call__(self, input: list[str]) -> list[list[float]]:
        raise NotImplementedError(
            "Vectors are pre-computed; ChromaDB's built-in embedding should never be called."
        )

    def name(self) -> str:
        """Return function name (required by ChromaDB's EmbeddingFunction protocol)."""
        return "noop_precomputed"


class ChromaDBProvider(IVectorStoreProvider):
    """Vector store provider backed by ChromaDB with local persistence.

    Chunk metadata is flattened into ChromaDB's scalar-only metadata:
    ``doc_id``, ``source``, ``type`` and ``page`` become top-level keys and
    the free-form chunk metadata dict is kept as a JSON string.
    """

    def __init__(
        self,
        dimension: int,
        persist_directory: str = "./data/chromadb",
        collection_name: str = "document_chunks",
    ) -> None:
        self._dimension = dimension
        self._persist_directory = persist_directory
        self._collection_name = collection_name
        self._client = chromadb.PersistentClient(
            path=persist_directory,
            settings=chromadb.config.Settings(anonymized_telemetry=False),
        )
        # A collection persisted with a different embedding function makes
        # newer ChromaDB versions raise ValueError; reopen without one.
        try:
            self._collection = self._client.get_or_create_collection(
                name=collection_name,
                metadata={"hnsw:space": "cosine"},
                embedding_function=_NoopEmbeddingFunction(),
            )
        except ValueError:
            self._collection = self._client.get_or_create_collection(
                name=collection_name,
                metadata={"hnsw:space": "cosine"},
            )
        logger.info(
            "chromadb_collection_opened",
            collection=collection_name,
            persist_directory=persist_directory,
            dimension=dimension,
        )

    # ------------------------------------------------------------------
    # IVectorStoreProvider implementation
    # ------------------------------------------------------------------

    async def add_chunks(
        self,
        chunks: list[DocumentChunk],
        batch_size: int = 500,
    ) -> int:
        """Append embedded chunks to the collection in batches of *batch_size*."""
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

        try:
            total_stored = 0
            for start in range(0, len(chunks), batch_size):
                batch = chunks[start : start + batch_size]
                # The ChromaDB client is synchronous; keep writes off the event loop.
                await asyncio.to_thread(
                    self._collection.add,
                    ids=[c.chunk_id for c in batch],
                    embeddings=[c.vector for c in batch],
                    documents=[c.text for c in batch],
                    metadatas=[self._chunk_to_metadata(c) for c in batch],
                )
                total_stored += len(batch)

            logger.info(
                "chromadb_add_chunks",
                count=total_stored,
                batches=(len(chunks) + batch_size - 1) // batch_size,
            )
            return total_stored

        except Exception as exc:
            raise VectorStoreError(
                message=f"ChromaDB add_chunks failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    async def similarity_search(
        self,
        query_vector: list[float],
        num_candidates: int,
        limit: int,
    ) -> list[RetrievedContext]:
        """Run a cosine k-NN query.

        ChromaDB's HNSW index sizes its own candidate list, so
        *num_candidates* is only logged here.  ``n_results`` is capped at
        the collection size because ChromaDB rejects larger requests on
        some versions.
        """
        try:
            stored = await asyncio.to_thread(self._collection.count)
            if stored == 0 or limit <= 0:
                return []

            results = await asyncio.to_thread(
                self._collection.query,
                query_embeddings=[query_vector],
                n_results=min(limit, stored),
                include=["documents", "metadatas", "distances"],
            )

            if not results["documents"] or not results["documents"][0]:
                return []

            documents = results["documents"][0]
            metadatas = results["metadatas"][0] if results["metadatas"] else [{}] * len(documents)
            distances = results["distances"][0] if results["distances"] else [0.0] * len(documents)

            contexts = [
                self._metadata_to_context(meta or {}, doc_text, max(0.0, min(1.0, 1.0 - distance)))
                for doc_text, meta, distance in zip(documents, metadatas, distances, strict=True)
            ]
            contexts.sort(key=lambda ctx: ctx.score, reverse=True)

            logger.info(
                "chromadb_query",
                num_candidates=num_candidates,
                limit=limit,
                results_count=len(contexts),
                top_score=contexts[0].score if contexts else 0.0,
            )
            return contexts

        except Exception as exc:
            raise VectorStoreError(
                message=f"ChromaDB query failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    async def count(self) -> int:
        try:
            return await asyncio.to_thread(self._collection.count)
        except Exception as exc:
            raise VectorStoreError(
                message=f"ChromaDB count failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    def get_provider_name(self) -> str:
        return "chromadb"

    def is_available(self) -> bool:
        """Return ``True`` if the ChromaDB collection is accessible."""
        try:
            self._collection.count()
            return True
        except Exception:
            return False

    # ------------------------------------------------------------------
    # Metadata conversion
    # ------------------------------------------------------------------

    @staticmethod
    def _chunk_to_metadata(chunk: DocumentChunk) -> dict[str, Any]:
        # ChromaDB metadata values must be scalars and never None.
        meta: dict[str, Any] = {
            "doc_id": chunk.doc_id,
            "source": chunk.source,
            "type": chunk.type.value,
            "metadata_json": json.dumps(chunk.metadata, default=str),
        }
        if chunk.page is not None:
            meta["page"] = chunk.page
        return meta

    @staticmethod
    def _metadata_to_context(meta: dict[str, Any], text: str, score: float) -> RetrievedContext:
        raw_type = meta.get("type", ContentType.TEXT.value)
        try:
            content_type = ContentType(raw_type)
        except ValueError:
            content_type = ContentType.TEXT

        try:
            extra = json.loads(meta.get("metadata_json") or "{}")
        except json.JSONDecodeError:
            extra = {}

        page = meta.get("page")
        return RetrievedContext(
            text=text or "",
            source=meta.get("source", ""),
            page=int(page) if page is not None else None,
            type=content_type,
            score=score,
            metadata=extra if isinstance(extra, dict) else {},
            doc_id=meta.get("doc_id", ""),
        )
