"""Document Q&A FastAPI application entry point.

Wires together providers, services, and routes via dependency injection.
Loads configuration from ``.env`` and ``config/config.yaml`` and configures
structured logging.  The embedding model is constructed here once per
process and shared by the ingestion and query pipelines; it loads lazily on
first use.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import structlog
import uvicorn
from fastapi import FastAPI, WebSocket

from src.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from src.api.routes import router as api_router
from src.api.websocket import websocket_progress
from src.config.loader import load_config
from src.config.settings import Settings
from src.interfaces.embedding_provider import IEmbeddingProvider
from src.interfaces.vector_store_provider import IVectorStoreProvider
from src.pipeline.progress_tracker import ProgressTracker
from src.providers.embedding import (
    FastEmbedEmbeddingProvider,
    SentenceTransformerEmbeddingProvider,
)
from src.providers.vector_store import ChromaDBProvider, InMemoryVectorStore
from src.services.answering import AnswerSynthesizer
from src.services.classifier import DocumentClassifier
from src.services.ingestion import IngestionService, TextChunker
from src.services.query_service import QueryService
from src.services.retrieval import RetrievalEngine
from src.utils.errors import ConfigurationError
from src.utils.logging import configure_logging, get_logger

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()
config = load_config(settings=settings)

configure_logging(
    log_level=settings.log_level,
    json_output=(settings.app_env == "production"),
)
_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Provider selection
# ---------------------------------------------------------------------------


def _build_embedding_provider(app_settings: Settings) -> IEmbeddingProvider:
    """Construct the configured embedding backend (the model loads lazily)."""
    backend = app_settings.embedding_backend.lower()
    kwargs = {
        "model_name": app_settings.embedding_model,
        "dimension": app_settings.embedding_dimension,
        "max_chars": app_settings.embedding_max_chars,
    }
    if backend == "fastembed":
        return FastEmbedEmbeddingProvider(**kwargs)
    if backend in ("sentence_transformers", "sentence-transformers"):
        return SentenceTransformerEmbeddingProvider(**kwargs)
    raise ConfigurationError(
        message=f"Unknown EMBEDDING_BACKEND '{app_settings.embedding_backend}'",
    )


def _build_vector_store(app_settings: Settings) -> IVectorStoreProvider:
    backend = app_settings.vector_store_backend.lower()
    if backend == "chromadb":
        return ChromaDBProvider(
            dimension=app_settings.embedding_dimension,
            persist_directory=app_settings.chromadb_persist_dir,
            collection_name=app_settings.chromadb_collection,
        )
    if backend == "memory":
        return InMemoryVectorStore(dimension=app_settings.embedding_dimension)
    raise ConfigurationError(
        message=f"Unknown VECTOR_STORE_BACKEND '{app_settings.vector_store_backend}'",
    )


# ---------------------------------------------------------------------------
# Full DI assembly
# ---------------------------------------------------------------------------


def _build_all(app_settings: Settings) -> dict[str, Any]:
    """Construct every provider and service instance for the application.

    Returns a flat dict of named components to be stored on ``app.state``.
    """
    embedding_provider = _build_embedding_provider(app_settings)
    vector_store = _build_vector_store(app_settings)

    chunker = TextChunker(
        max_words=app_settings.chunk_max_words,
        overlap=app_settings.chunk_overlap_words,
        table_max_rows=app_settings.table_max_rows,
    )
    ingestion_service = IngestionService(
        chunker=chunker,
        embedding_provider=embedding_provider,
        vector_store=vector_store,
        file_timeout=app_settings.ingest_file_timeout_seconds,
    )

    retrieval_engine = RetrievalEngine(
        vector_store=vector_store,
        score_threshold=app_settings.retrieval_score_threshold,
        min_candidates=app_settings.retrieval_min_candidates,
        candidate_multiplier=app_settings.retrieval_candidate_multiplier,
        fetch_multiplier=app_settings.retrieval_fetch_multiplier,
    )
    query_service = QueryService(
        embedding_provider=embedding_provider,
        retrieval_engine=retrieval_engine,
        classifier=DocumentClassifier(),
        synthesizer=AnswerSynthesizer(),
        default_top_k=app_settings.default_top_k,
    )

    return {
        "embedding_provider": embedding_provider,
        "vector_store": vector_store,
        "ingestion_service": ingestion_service,
        "query_service": query_service,
        "progress_tracker": ProgressTracker(),
    }


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Initialise providers and services on startup."""
    components = _build_all(settings)

    for key, value in components.items():
        setattr(application.state, key, value)
    application.state.app_version = config.get("app", {}).get("version", "0.1.0")

    _logger.info(
        "app_startup",
        version=application.state.app_version,
        environment=settings.app_env,
        embedding=components["embedding_provider"].get_provider_name(),
        vector_store=components["vector_store"].get_provider_name(),
    )

    yield

    _logger.info("app_shutdown")


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    app_config = config.get("app", {})
    application = FastAPI(
        title=app_config.get("name", "visual-doc-rag"),
        version=app_config.get("version", "0.1.0"),
        description=app_config.get(
            "description",
            "Ask questions about scanned and extracted documents.",
        ),
        lifespan=_lifespan,
    )

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application, allowed_origins=settings.cors_origins)

    # -- API routes --
    application.include_router(api_router)

    # -- WebSocket --
    @application.websocket("/ws/progress/{session_id}")
    async def ws_progress(websocket: WebSocket, session_id: str) -> None:
        await websocket_progress(websocket, session_id)

    return application


app = create_app()

# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    uvicorn.run(
        "src.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )
