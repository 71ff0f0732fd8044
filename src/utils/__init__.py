"""Utility modules shared by the ingestion and query pipelines.

- **errors** -- Exception hierarchy rooted at DocRAGError.
- **logging** -- structlog setup: coloured console output in development,
  JSON in production.
"""

from src.utils.errors import (
    ConfigurationError,
    DocRAGError,
    EmbeddingError,
    EmbeddingModelLoadError,
    IngestionTimeoutError,
    InvalidSourceFilterError,
    VectorStoreError,
)
from src.utils.logging import configure_logging, get_logger

__all__ = [
    "ConfigurationError",
    "DocRAGError",
    "EmbeddingError",
    "EmbeddingModelLoadError",
    "IngestionTimeoutError",
    "InvalidSourceFilterError",
    "VectorStoreError",
    "configure_logging",
    "get_logger",
]
