"""Integration tests for FastAPI API endpoints using TestClient.

The app under test is assembled the same way ``src/main.py`` does it, but
with a deterministic mock embedding provider and the in-memory vector store
so no model download or disk state is involved.
"""

from __future__ import annotations

import pytest
from fastapi import FastAPI, WebSocket
from fastapi.testclient import TestClient

from src.api.middleware import ErrorHandlingMiddleware, RequestLoggingMiddleware
from src.api.routes import router as api_router
from src.api.websocket import websocket_progress
from src.pipeline.progress_tracker import ProgressTracker
from src.providers.vector_store.memory_provider import InMemoryVectorStore
from src.services.answering import AnswerSynthesizer
from src.services.classifier import DocumentClassifier
from src.services.ingestion import IngestionService, TextChunker
from src.services.query_service import QueryService
from src.services.retrieval import RetrievalEngine
from tests.conftest import MockEmbeddingProvider

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _create_test_app() -> tuple[FastAPI, ProgressTracker, InMemoryVectorStore]:
    app = FastAPI()
    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.include_router(api_router)

    @app.websocket("/ws/progress/{session_id}")
    async def ws_progress(websocket: WebSocket, session_id: str) -> None:
        await websocket_progress(websocket, session_id)

    embedding = MockEmbeddingProvider()
    store = InMemoryVectorStore(dimension=embedding.get_dimension())
    tracker = ProgressTracker()

    app.state.embedding_provider = embedding
    app.state.vector_store = store
    app.state.progress_tracker = tracker
    app.state.app_version = "0.1.0"
    app.state.ingestion_service = IngestionService(
        chunker=TextChunker(),
        embedding_provider=embedding,
        vector_store=store,
    )
    app.state.query_service = QueryService(
        embedding_provider=embedding,
        retrieval_engine=RetrievalEngine(store, score_threshold=0.05),
        classifier=DocumentClassifier(),
        synthesizer=AnswerSynthesizer(),
    )
    return app, tracker, store


@pytest.fixture
def test_app():
    """Create a test app and return (TestClient, tracker, store)."""
    app, tracker, store = _create_test_app()
    return TestClient(app), tracker, store


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestIngestEndpoints:
    def test_ingest_text(self, test_app) -> None:
        client, _, _ = test_app
        response = client.post(
            "/api/v1/ingest",
            json={"text": "A meaningful paragraph of extracted text.", "source": "a.pdf", "page": 1},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 1
        assert data["source"] == "a.pdf"
        assert data["doc_id"].endswith("-a.pdf")

    def test_ingest_noise_returns_zero(self, test_app) -> None:
        client, _, _ = test_app
        response = client.post("/api/v1/ingest", json={"text": "1 2 3", "source": "n.png"})
        assert response.status_code == 200
        assert response.json()["count"] == 0

    def test_ingest_validation_error(self, test_app) -> None:
        client, _, _ = test_app
        response = client.post("/api/v1/ingest", json={"text": "", "source": "a.pdf"})
        assert response.status_code == 422

    def test_store_dimension_mismatch_is_structured_500(self) -> None:
        app, _, _ = _create_test_app()
        embedding = app.state.embedding_provider
        app.state.ingestion_service = IngestionService(
            chunker=TextChunker(),
            embedding_provider=embedding,
            vector_store=InMemoryVectorStore(dimension=3),
        )
        client = TestClient(app)

        response = client.post(
            "/api/v1/ingest",
            json={"text": "A meaningful paragraph of extracted text.", "source": "a.pdf"},
        )

        assert response.status_code == 500
        data = response.json()
        assert data["error"] == "VectorStoreError"
        assert "store expects 3" in data["detail"]

    def test_ingest_table(self, test_app) -> None:
        client, _, store = test_app
        response = client.post(
            "/api/v1/ingest/table",
            json={"csv_text": "name,value\nalpha,1\nbeta,2", "source": "t.csv", "doc_id": "tbl"},
        )
        assert response.status_code == 200
        assert response.json() == {
            "doc_id": "tbl",
            "source": "t.csv",
            "count": 1,
            "ingestion_time": response.json()["ingestion_time"],
        }

    def test_ingest_batch(self, test_app) -> None:
        client, _, _ = test_app
        response = client.post(
            "/api/v1/ingest/batch",
            json={
                "documents": [
                    {
                        "source": "scan.pdf",
                        "segments": [
                            {"text": "Text layer with several words.", "kind": "text"},
                            {"text": "Figure 1 chart axis", "page": 1, "kind": "ocr"},
                        ],
                    },
                    {"source": "empty.pdf", "segments": []},
                ]
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["total_chunks"] == 2
        assert [r["count"] for r in data["ingested"]] == [2, 0]
        assert data["failed"] == []

    def test_ingest_batch_rejects_unknown_kind(self, test_app) -> None:
        client, _, _ = test_app
        response = client.post(
            "/api/v1/ingest/batch",
            json={"documents": [{"source": "x", "segments": [{"text": "t", "kind": "audio"}]}]},
        )
        assert response.status_code == 422


class TestQueryEndpoint:
    def test_query_empty_corpus(self, test_app) -> None:
        client, _, _ = test_app
        response = client.post("/api/v1/query", json={"question": "What is this?"})

        assert response.status_code == 200
        assert response.json() == {"answer": "No relevant context found.", "contexts": []}

    def test_certificate_question(self, test_app) -> None:
        client, _, _ = test_app
        client.post(
            "/api/v1/ingest",
            json={
                "text": (
                    "John Smith was awarded this Certificate for completing the course "
                    "Data Science issued by Coursera on June 1, 2023."
                ),
                "source": "cert.png",
                "content_type": "certificate_ocr",
            },
        )

        response = client.post(
            "/api/v1/query",
            json={"question": "Who was awarded this certificate?", "top_k": 3},
        )

        assert response.status_code == 200
        data = response.json()
        assert "**Recipient:** John Smith" in data["answer"]
        assert data["contexts"][0]["source"] == "cert.png"
        assert data["contexts"][0]["type"] == "certificate_ocr"
        assert data["contexts"][0]["score"] > 0.05

    def test_invalid_source_filter_is_400(self, test_app) -> None:
        client, _, _ = test_app
        response = client.post(
            "/api/v1/query",
            json={"question": "anything", "source_filter": "([bad"},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "InvalidSourceFilterError"

    def test_top_k_bounds(self, test_app) -> None:
        client, _, _ = test_app
        response = client.post("/api/v1/query", json={"question": "q", "top_k": 0})
        assert response.status_code == 422


class TestProgress:
    def test_session_events_recorded(self, test_app) -> None:
        client, tracker, _ = test_app
        client.post(
            "/api/v1/ingest",
            json={"text": "Some meaningful extracted text.", "source": "a.pdf", "session_id": "s1"},
        )

        response = client.get("/api/v1/progress/s1")

        assert response.status_code == 200
        events = response.json()["events"]
        assert [e["label"] for e in events] == ["chunking", "ingest"]
        assert events[-1]["type"] == "success"
        assert len(tracker.get_events("s1")) == 2

    def test_unknown_session_is_empty(self, test_app) -> None:
        client, _, _ = test_app
        assert client.get("/api/v1/progress/nope").json() == {"session_id": "nope", "events": []}

    def test_websocket_replays_history(self, test_app) -> None:
        client, _, _ = test_app
        client.post(
            "/api/v1/ingest",
            json={"text": "Some meaningful extracted text.", "source": "a.pdf", "session_id": "s2"},
        )

        with client.websocket_connect("/ws/progress/s2") as ws:
            first = ws.receive_json()
            second = ws.receive_json()

        assert first["session_id"] == "s2"
        assert first["label"] == "chunking"
        assert second["message"] == "Indexed 1 chunks (64-dim vectors)"


class TestHealthEndpoint:
    def test_health(self, test_app) -> None:
        client, _, _ = test_app
        response = client.get("/api/v1/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["version"] == "0.1.0"
        assert data["providers"]["embedding"]["name"] == "mock-embedding"
        assert data["providers"]["vector_store"] == {"name": "memory", "available": True}
        assert data["providers"]["chunks"] == 0
