"""Shared pytest fixtures for the document Q&A test suite."""

from __future__ import annotations

import hashlib
import math
import re
from typing import Any

import pytest

from src.interfaces.embedding_provider import IEmbeddingProvider
from src.models.progress import ProgressEvent
from src.models.rag import ContentType, DocumentChunk, RetrievedContext
from src.pipeline.progress_tracker import ProgressReporter
from src.providers.vector_store.memory_provider import InMemoryVectorStore

_EMBEDDING_DIM = 64
_WORD = re.compile(r"[a-z0-9]+")


def _hash_to_vector(text: str, dim: int = _EMBEDDING_DIM) -> list[float]:
    """Hashed bag-of-words vector, L2-normalised.

    Texts sharing words get a positive cosine similarity, so retrieval tests
    can rely on lexical overlap without a real model.
    """
    vector = [0.0] * dim
    for word in _WORD.findall(text.lower()):
        digest = hashlib.md5(word.encode("utf-8")).digest()  # noqa: S324
        vector[int.from_bytes(digest[:4], "big") % dim] += 1.0
    norm = math.sqrt(sum(v * v for v in vector))
    if norm == 0:
        return vector
    return [v / norm for v in vector]


class MockEmbeddingProvider(IEmbeddingProvider):
    """In-memory deterministic embedding provider for tests."""

    def __init__(self, dim: int = _EMBEDDING_DIM) -> None:
        self._dim = dim
        self.calls: list[list[str]] = []

    async def embed(
        self,
        texts: list[str],
        progress: ProgressReporter | None = None,
    ) -> list[list[float]]:
        self.calls.append(list(texts))
        return [_hash_to_vector(t, self._dim) for t in texts]

    async def embed_single(self, text: str) -> list[float]:
        return (await self.embed([text]))[0]

    def get_dimension(self) -> int:
        return self._dim

    def get_provider_name(self) -> str:
        return "mock-embedding"

    def is_available(self) -> bool:
        return True

    def describe(self) -> dict[str, Any]:
        return {"model": "mock", "backend": "mock", "dimensions": self._dim, "loaded": True}


class EventRecorder:
    """Progress sink that keeps every event it receives."""

    def __init__(self) -> None:
        self.events: list[ProgressEvent] = []

    def __call__(self, event: ProgressEvent) -> None:
        self.events.append(event)

    @property
    def types(self) -> list[str]:
        return [e.type.value for e in self.events]

    def messages(self, label: str) -> list[str]:
        return [e.message for e in self.events if e.label == label]


def make_context(
    text: str,
    source: str = "doc.pdf",
    score: float = 0.9,
    page: int | None = None,
    type: ContentType = ContentType.TEXT,  # noqa: A002
) -> RetrievedContext:
    return RetrievedContext(text=text, source=source, page=page, type=type, score=score)


def make_chunk(
    text: str,
    vector: list[float],
    source: str = "doc.pdf",
    doc_id: str = "doc-1",
    page: int | None = None,
    type: ContentType = ContentType.TEXT,  # noqa: A002
) -> DocumentChunk:
    return DocumentChunk(
        doc_id=doc_id,
        source=source,
        page=page,
        type=type,
        text=text,
        vector=vector,
    )


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_embedding_provider() -> MockEmbeddingProvider:
    """Mock IEmbeddingProvider returning deterministic hash-based vectors."""
    return MockEmbeddingProvider()


@pytest.fixture
def memory_store() -> InMemoryVectorStore:
    """Empty in-memory vector store matching the mock embedding dimension."""
    return InMemoryVectorStore(dimension=_EMBEDDING_DIM)


@pytest.fixture
def recorder() -> EventRecorder:
    return EventRecorder()


@pytest.fixture
def certificate_text() -> str:
    return (
        "John Smith was awarded this Certificate for completing the course "
        "Data Science issued by Coursera on June 1, 2023."
    )


@pytest.fixture
def resume_text() -> str:
    return (
        "Jane Doe CONTACT Email: jane.doe@example.com Phone: +1 555 123 4567 "
        "LinkedIn: linkedin.com/in/janedoe "
        "TECHNICAL SKILLS Python, FastAPI, Docker | PostgreSQL "
        "PROJECTS Built a document search engine with vector retrieval. "
        "EXPERIENCE Backend engineer at Acme Corporation for three years. "
        "EDUCATION B.Tech in Computer Science, Stanford University, 2019"
    )


@pytest.fixture
def financial_text() -> str:
    return (
        "Quarterly financial report. Revenue of $4.5 million in Q2 2023 versus "
        "$3.9 million in Q2 2022. Profit increased by 12% year over year. "
        "Operating margin rose from 18% to 21%."
    )
