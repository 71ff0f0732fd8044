"""Abstract base class for text-embedding service providers.

Defines the contract for turning text into fixed-dimension vectors.
Implementations wrap a local model (fastembed ONNX, sentence-transformers)
and own that model's lifecycle; the pipelines only ever see this interface,
so the backend can be swapped without touching ingestion or query code.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from src.pipeline.progress_tracker import ProgressReporter


# Concrete implementations (src/providers/embedding/):
#   FastEmbedEmbeddingProvider           — ONNX runtime, no PyTorch (default)
#   SentenceTransformerEmbeddingProvider — PyTorch-based
class IEmbeddingProvider(ABC):
    """Contract for embedding services used by both pipelines.

    One instance is constructed per process and injected into the
    ingestion and query services, so the underlying model is loaded once.
    """

    @abstractmethod
    async def embed(
        self,
        texts: list[str],
        progress: ProgressReporter | None = None,
    ) -> list[list[float]]:
        """Generate embedding vectors for a batch of texts.

        Parameters
        ----------
        texts:
            Texts to embed.  Each is truncated to the provider's character
            budget before it reaches the model.
        progress:
            Optional reporter receiving model-load and per-item checkpoints.

        Returns
        -------
        list[list[float]]
            Exactly ``len(texts)`` vectors, positionally aligned with
            *texts*, each of length :meth:`get_dimension`.  Empty texts and
            texts that fail to embed yield an all-zero vector instead of
            shrinking the batch.

        Raises
        ------
        src.utils.errors.EmbeddingModelLoadError
            If the model cannot be loaded.
        """

    @abstractmethod
    async def embed_single(self, text: str) -> list[float]:
        """Embed one text (e.g. a question) as a single-item batch."""

    @abstractmethod
    def get_dimension(self) -> int:
        """Return the fixed dimensionality D of produced vectors."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"fastembed_all-MiniLM-L6-v2"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the backing library is installed."""

    @abstractmethod
    def describe(self) -> dict[str, Any]:
        """Return model id, dimension, character budget and load state."""
