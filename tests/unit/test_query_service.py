"""Unit tests for the query service — embed, retrieve, group, classify, synthesize."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.interfaces.embedding_provider import IEmbeddingProvider
from src.pipeline.progress_tracker import ProgressReporter
from src.providers.vector_store.memory_provider import InMemoryVectorStore
from src.services.answering import NO_CONTEXT_ANSWER
from src.services.query_service import QueryService
from src.services.retrieval import RetrievalEngine
from src.utils.errors import InvalidSourceFilterError
from tests.conftest import make_chunk


def _embedding(query_vector: list[float]) -> MagicMock:
    mock = MagicMock(spec=IEmbeddingProvider)
    mock.embed_single = AsyncMock(return_value=query_vector)
    mock.get_dimension.return_value = len(query_vector)
    return mock


async def _store(*chunks) -> InMemoryVectorStore:
    store = InMemoryVectorStore(dimension=3)
    await store.add_chunks(list(chunks))
    return store


class TestQueryService:
    @pytest.mark.asyncio
    async def test_no_context_above_threshold(self) -> None:
        store = await _store(make_chunk("unrelated text here", [0.0, 1.0, 0.0]))
        service = QueryService(_embedding([1.0, 0.0, 0.0]), RetrievalEngine(store))

        result = await service.query("Who received the award?")

        assert result.answer == "No relevant context found."
        assert result.contexts == []

    @pytest.mark.asyncio
    async def test_certificate_answer_end_to_end(self, certificate_text: str) -> None:
        store = await _store(
            make_chunk(certificate_text, [1.0, 0.0, 0.0], source="cert.png"),
            make_chunk("Irrelevant shopping list", [0.0, 0.0, 1.0], source="list.txt"),
        )
        service = QueryService(_embedding([1.0, 0.1, 0.0]), RetrievalEngine(store))

        result = await service.query("what is this about")

        assert "**Recipient:** John Smith" in result.answer
        assert "**Course/Program:** Data Science" in result.answer
        assert "**Issued By:** Coursera" in result.answer
        assert "**Date:** June 1, 2023" in result.answer
        assert "Unknown" not in result.answer
        assert [c.source for c in result.contexts] == ["cert.png"]

    @pytest.mark.asyncio
    async def test_primary_source_drives_answer(self) -> None:
        store = await _store(
            make_chunk("Meeting between Alice Brown and Bob Stone.", [1.0, 0.0, 0.0], source="a.txt"),
            make_chunk("Notes by Carol White.", [0.9, 0.3, 0.0], source="b.txt"),
            make_chunk("More notes by Carol White.", [0.9, 0.35, 0.0], source="b.txt"),
        )
        service = QueryService(_embedding([1.0, 0.0, 0.0]), RetrievalEngine(store))

        result = await service.query("Who is mentioned?")

        # b.txt wins on summed score even though a.txt has the single best hit.
        assert result.answer == "The name mentioned is: **Carol White**"
        assert len(result.contexts) == 3
        assert result.contexts[0].source == "a.txt"

    @pytest.mark.asyncio
    async def test_top_k_and_source_filter_forwarded(self) -> None:
        retrieval = MagicMock(spec=RetrievalEngine)
        retrieval.search = AsyncMock(return_value=[])
        service = QueryService(_embedding([1.0, 0.0, 0.0]), retrieval, default_top_k=7)

        await service.query("question", source_filter=r"\.pdf$")
        retrieval.search.assert_awaited_once_with([1.0, 0.0, 0.0], top_k=7, source_filter=r"\.pdf$")

        retrieval.search.reset_mock()
        await service.query("question", top_k=2)
        retrieval.search.assert_awaited_once_with([1.0, 0.0, 0.0], top_k=2, source_filter=None)

    @pytest.mark.asyncio
    async def test_blank_question_short_circuits(self) -> None:
        embedding = _embedding([1.0, 0.0, 0.0])
        service = QueryService(embedding, MagicMock(spec=RetrievalEngine))

        result = await service.query("   ")

        assert result.answer == NO_CONTEXT_ANSWER
        embedding.embed_single.assert_not_called()

    @pytest.mark.asyncio
    async def test_invalid_filter_propagates(self) -> None:
        store = await _store()
        service = QueryService(_embedding([1.0, 0.0, 0.0]), RetrievalEngine(store))

        with pytest.raises(InvalidSourceFilterError):
            await service.query("question", source_filter="(")

    @pytest.mark.asyncio
    async def test_progress_events(self, recorder) -> None:
        store = await _store()
        service = QueryService(_embedding([1.0, 0.0, 0.0]), RetrievalEngine(store))

        await service.query("question", progress=ProgressReporter(recorder))

        assert recorder.types == ["processing", "success"]
        assert recorder.messages("query")[-1] == "Answered from 0 contexts"
