"""Vector store provider implementations.

ChromaDB is the default store. It keeps chunk embeddings on disk at
CHROMADB_PERSIST_DIR (default: ./data/chromadb) and runs cosine-similarity
search.  The in-memory store is selected with VECTOR_STORE_BACKEND=memory.

To swap in another vector database, create a new class implementing
IVectorStoreProvider and register it in main.py.
"""

from src.providers.vector_store.chromadb_provider import ChromaDBProvider
from src.providers.vector_store.memory_provider import InMemoryVectorStore

__all__ = ["ChromaDBProvider", "InMemoryVectorStore"]
