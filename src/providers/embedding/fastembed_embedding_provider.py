"""Local ONNX-based embedding provider using fastembed.

Wraps the ``fastembed`` library to implement :class:`IEmbeddingProvider`
using ONNX Runtime — **no PyTorch dependency required**.  Runs on CPU with
a small RAM footprint, which makes it the default backend.

Default model: ``sentence-transformers/all-MiniLM-L6-v2`` (384 dimensions).
"""

from __future__ import annotations

from typing import Any

from src.providers.embedding.local_model_provider import LocalModelEmbeddingProvider

# Known model dimensions for fastembed-supported models.
_MODEL_DIMENSIONS: dict[str, int] = {
    "sentence-transformers/all-MiniLM-L6-v2": 384,
    "BAAI/bge-small-en-v1.5": 384,
    "BAAI/bge-base-en-v1.5": 768,
    "intfloat/multilingual-e5-large": 1024,
}

_DEFAULT_MODEL = "sentence-transformers/all-MiniLM-L6-v2"


class FastEmbedEmbeddingProvider(LocalModelEmbeddingProvider):
    """Embedding provider backed by fastembed (ONNX Runtime).

    Model weights are downloaded on first load and cached locally.
    """

    _backend_name = "fastembed"

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
        from fastembed import TextEmbedding

        return TextEmbedding(model_name=self._model_name)

    def _encode(self, model: Any, text: str) -> list[float]:
        # fastembed yields one numpy array per input text.
        vector = next(iter(model.embed([text])))
        return vector.tolist()

    def is_available(self) -> bool:
        """Return ``True`` if fastembed is installed."""
        try:
            import fastembed  # noqa: F401

            return True
        except ImportError:
            return False
