"""Custom exception hierarchy for the document Q&A service.

All application exceptions inherit from :class:`DocRAGError`, which carries
an optional ``provider_name`` so error handlers can identify which
collaborator (e.g. "fastembed", "chromadb") caused the failure.

    DocRAGError  (base -- catch-all for any application error)
    +-- EmbeddingModelLoadError   (model could not be loaded; fatal to the request)
    +-- EmbeddingError            (a whole embedding batch could not be produced)
    +-- VectorStoreError          (vector-store write or query failure)
    +-- IngestionTimeoutError     (one file exceeded its ingestion timeout)
    +-- InvalidSourceFilterError  (source filter is not a valid regex)
    +-- ConfigurationError        (startup / missing config)

Failures that the pipelines recover from locally -- a single text that
cannot be embedded, a question for which no context clears the score
threshold, an extractor that finds nothing -- are not represented here
because they never surface as exceptions.
"""


class DocRAGError(Exception):
    """Base exception for all application errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which external collaborator triggered
    the error.  ``__str__`` prefixes the provider name in brackets, e.g.
    ``[chromadb] add_chunks failed``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Embedding errors
# ---------------------------------------------------------------------------

class EmbeddingModelLoadError(DocRAGError):
    """Raised when the embedding model cannot be loaded.

    The model is loaded lazily by the first request that needs it; that
    request fails with this error and the next request retries the load.
    """

    def __init__(
        self,
        message: str = "Embedding model failed to load",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class EmbeddingError(DocRAGError):
    """Raised when an embedding batch cannot be produced at all."""

    def __init__(
        self,
        message: str = "Embedding generation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Storage / retrieval errors
# ---------------------------------------------------------------------------

class VectorStoreError(DocRAGError):
    """Raised when the vector store fails to persist or query chunks."""

    def __init__(
        self,
        message: str = "Vector store operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class InvalidSourceFilterError(DocRAGError):
    """Raised when a retrieval source filter is not a valid regular expression."""

    def __init__(
        self,
        message: str = "Invalid source filter",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Ingestion / configuration errors
# ---------------------------------------------------------------------------

class IngestionTimeoutError(DocRAGError):
    """Raised when a single document exceeds its ingestion timeout.

    Scoped to the offending document: the batch job records the failure
    and moves on to the next document.
    """

    def __init__(
        self,
        message: str = "Document ingestion timed out",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ConfigurationError(DocRAGError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
