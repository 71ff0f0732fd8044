"""Shared lazy-loading base for embedding providers backed by a local model.

Both local backends follow the same lifecycle:

1. **Single-flight lazy load** -- the model is created on the first call to
   :meth:`embed`, inside ``asyncio.to_thread`` so the event loop keeps
   serving requests.  An ``asyncio.Lock`` makes concurrent first callers
   wait for that one load instead of starting their own; everyone observes
   the same model object afterwards.  A failed load leaves the provider
   unloaded so the next request retries.
2. **Item-by-item embedding** -- texts are embedded sequentially.  Each is
   trimmed and cut to ``max_chars``; an empty text or a text the model
   chokes on produces a zero vector at its position, so the output batch
   always lines up with the input batch.
"""

from __future__ import annotations

import asyncio
from abc import abstractmethod
from typing import Any

import structlog

from src.interfaces.embedding_provider import IEmbeddingProvider
from src.pipeline.progress_tracker import ProgressReporter
from src.utils.errors import EmbeddingModelLoadError

logger = structlog.get_logger(logger_name=__name__)


class LocalModelEmbeddingProvider(IEmbeddingProvider):
    """Base class for in-process embedding models.

    Subclasses implement :meth:`_create_model` (blocking, runs in a worker
    thread) and :meth:`_encode` (blocking, one text in, one vector out).

    Parameters
    ----------
    model_name:
        Model identifier understood by the backing library.
    dimension:
        Expected vector length D.  A model output of any other length is
        treated as a failed item.
    max_chars:
        Character budget applied to every text before encoding.
    """

    _backend_name = "local"

    def __init__(self, model_name: str, dimension: int, max_chars: int = 512) -> None:
        self._model_name = model_name
        self._dimension = dimension
        self._max_chars = max_chars
        self._model: Any = None
        self._load_lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Backend hooks
    # ------------------------------------------------------------------

    @abstractmethod
    def _create_model(self) -> Any:
        """Load and return the backend model object (blocking)."""

    @abstractmethod
    def _encode(self, model: Any, text: str) -> list[float]:
        """Encode a single non-empty text (blocking)."""

    # ------------------------------------------------------------------
    # Model lifecycle
    # ------------------------------------------------------------------

    @property
    def is_loaded(self) -> bool:
        return self._model is not None

    async def _ensure_model(self, progress: ProgressReporter) -> Any:
        if self._model is not None:
            return self._model

        async with self._load_lock:
            # Another caller may have finished the load while we waited.
            if self._model is not None:
                return self._model

            await progress.processing("model", f"Loading embedding model {self._model_name}...")
            logger.info("loading_embedding_model", model=self._model_name, backend=self._backend_name)
            try:
                model = await asyncio.to_thread(self._create_model)
            except Exception as exc:
                logger.error("embedding_model_load_failed", model=self._model_name, error=str(exc))
                await progress.error("model", f"Failed to load embedding model: {exc}")
                raise EmbeddingModelLoadError(
                    message=f"Failed to load embedding model '{self._model_name}': {exc}",
                    provider_name=self.get_provider_name(),
                ) from exc

            self._model = model
            logger.info("embedding_model_loaded", model=self._model_name, dimension=self._dimension)
            await progress.success("model", "Embedding model loaded")
            return self._model

    # ------------------------------------------------------------------
    # IEmbeddingProvider implementation
    # ------------------------------------------------------------------

    async def embed(
        self,
        texts: list[str],
        progress: ProgressReporter | None = None,
    ) -> list[list[float]]:
        if not texts:
            return []

        progress = progress or ProgressReporter()
        model = await self._ensure_model(progress)

        total = len(texts)
        await progress.processing("embedding", f"Processing {total} texts for embedding...")

        vectors: list[list[float]] = []
        failures = 0
        for index, text in enumerate(texts):
            clean = (text or "").strip()[: self._max_chars]
            if not clean:
                vectors.append(self._zero_vector())
                continue

            try:
                vector = await asyncio.to_thread(self._encode, model, clean)
                if len(vector) != self._dimension:
                    raise ValueError(
                        f"model returned {len(vector)} dimensions, expected {self._dimension}"
                    )
            except Exception as exc:
                failures += 1
                logger.warning("embedding_item_failed", index=index, error=str(exc))
                await progress.error("embedding", f"Error processing text {index + 1}: {exc}")
                vectors.append(self._zero_vector())
                continue

            vectors.append(vector)
            await progress.success("embedding", f"Generated embedding {index + 1}/{total}")

        logger.info(
            "embedding_batch_complete",
            provider=self.get_provider_name(),
            count=total,
            failures=failures,
        )
        return vectors

    async def embed_single(self, text: str) -> list[float]:
        result = await self.embed([text])
        return result[0]

    def get_dimension(self) -> int:
        return self._dimension

    def get_provider_name(self) -> str:
        return f"{self._backend_name}_{self._model_name.split('/')[-1]}"

    def describe(self) -> dict[str, Any]:
        return {
            "model": self._model_name,
            "backend": self._backend_name,
            "dimensions": self._dimension,
            "max_chars": self._max_chars,
            "loaded": self.is_loaded,
        }

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _zero_vector(self) -> list[float]:
        return [0.0] * self._dimension
