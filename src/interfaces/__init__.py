"""Interfaces for the external collaborators the core talks to.

Concrete adapters live in ``src/providers/`` and are chosen in
``src/main.py``; tests inject mocks built from these ABCs.

    Interface              →  Concrete implementations
    ─────────────────────────────────────────────────────
    IEmbeddingProvider     →  FastEmbedEmbeddingProvider,
                              SentenceTransformerEmbeddingProvider
    IVectorStoreProvider   →  ChromaDBProvider, InMemoryVectorStore
"""

from src.interfaces.embedding_provider import IEmbeddingProvider
from src.interfaces.vector_store_provider import IVectorStoreProvider

__all__ = [
    "IEmbeddingProvider",
    "IVectorStoreProvider",
]
