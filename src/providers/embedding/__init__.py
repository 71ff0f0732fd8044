"""Embedding provider implementations.

Both providers run a local model and share the lazy single-flight loader
in ``local_model_provider.py``:

    1. FastEmbedEmbeddingProvider — ONNX runtime, no PyTorch. Default.
    2. SentenceTransformerEmbeddingProvider — PyTorch-based fallback.

The backend libraries are imported only when a model is first loaded, so
importing this package never pulls in fastembed or torch.
"""

from src.providers.embedding.fastembed_embedding_provider import FastEmbedEmbeddingProvider
from src.providers.embedding.local_model_provider import LocalModelEmbeddingProvider
from src.providers.embedding.sentence_transformer_embedding_provider import (
    SentenceTransformerEmbeddingProvider,
)

__all__ = [
    "FastEmbedEmbeddingProvider",
    "LocalModelEmbeddingProvider",
    "SentenceTransformerEmbeddingProvider",
]
