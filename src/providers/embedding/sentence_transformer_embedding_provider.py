"""Local sentence-transformers embedding provider adapter.

Wraps the ``sentence-transformers`` library to implement
:class:`IEmbeddingProvider` with any HuggingFace embedding model.  Needs
PyTorch, so it is the fallback when fastembed is not installed.

Default model: ``sentence-transformers/all-MiniLM-L6-v2`` (384 dimensions),
mean-pooled and L2-normalised.
"""

from __future__ import annotations

from typing import Any

from src.providers.embedding.local_model_provider import LocalModelEmbeddingProvider

_MODEL_DIMENSIONS: dict[str, int] = {
    "sentence-transformers/all-MiniLM-L6-v2": 384,
    "sentence-transformers/all-mpnet-base-v2": 768,
    "BAAI/bge-small-en-v1.5": 384,
    "BAAI/bge-base-en-v1.5": 768,
}

_DEFAULT_MODEL = "sentence-transformers/all-MiniLM-L6-v2"


class SentenceTransformerEmbeddingProvider(LocalModelEmbeddingProvider):
    """Embedding provider backed by a local sentence-transformers model."""

    _backend_name = "sentence_transformer"

    def __init__(
        self,
        model_name: str | None = None,
        dimension: int | None = None,
        max_chars: int = 512,
    ) -> None:
        model_name = model_name or _DEFAULT_MODEL
        super().__init__(
            model_name=model_name,
            dimension=dimension or _MODEL_DIMENSIONS.get(model_name, 384),
            max_chars=max_chars,
        )

    def _create_model(self) -> Any:
        from sentence_transformers import SentenceTransformer

        return SentenceTransformer(self._model_name)

    def _encode(self, model: Any, text: str) -> list[float]:
        vectors = model.encode(
            [text],
            normalize_embeddings=True,
            show_progress_bar=False,
        )
        return vectors[0].tolist()

    def is_available(self) -> bool:
        """Return ``True`` if sentence-transformers is installed."""
        try:
            import sentence_transformers  # noqa: F401

            return True
        except ImportError:
            return False
