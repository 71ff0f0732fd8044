"""Unit tests for the local embedding providers — fastembed, sentence-transformers.

Real models are never loaded: ``_create_model`` is patched or overridden so
the tests exercise the shared lazy-load and per-item fallback logic.
"""

from __future__ import annotations

import asyncio
import threading
import time
from typing import Any
from unittest.mock import MagicMock, patch

import numpy as np
import pytest

from src.pipeline.progress_tracker import ProgressReporter
from src.providers.embedding.fastembed_embedding_provider import FastEmbedEmbeddingProvider
from src.providers.embedding.local_model_provider import LocalModelEmbeddingProvider
from src.providers.embedding.sentence_transformer_embedding_provider import (
    SentenceTransformerEmbeddingProvider,
)
from src.utils.errors import EmbeddingModelLoadError


class _StubProvider(LocalModelEmbeddingProvider):
    """Local provider whose "model" is a plain object and whose encoder is scriptable."""

    _backend_name = "stub"

    def __init__(self, dimension: int = 4, fail_on: set[str] | None = None, **kwargs: Any) -> None:
        super().__init__(model_name="org/stub-model", dimension=dimension, **kwargs)
        self.fail_on = fail_on or set()
        self.load_calls = 0
        self.encoded: list[str] = []
        self._count_lock = threading.Lock()
        self.load_delay = 0.0
        self.load_error: Exception | None = None

    def _create_model(self) -> Any:
        with self._count_lock:
            self.load_calls += 1
        time.sleep(self.load_delay)
        if self.load_error is not None:
            raise self.load_error
        return object()

    def _encode(self, model: Any, text: str) -> list[float]:
        self.encoded.append(text)
        if text in self.fail_on:
            raise RuntimeError(f"cannot encode {text}")
        return [float(len(text))] * self._dimension


# ======================================================================
# Shared lazy-load behaviour
# ======================================================================


class TestLocalModelEmbeddingProvider:
    @pytest.mark.asyncio
    async def test_failed_items_become_zero_vectors(self) -> None:
        provider = _StubProvider(fail_on={"bad one", "bad two"})
        result = await provider.embed(["good", "bad one", "fine", "bad two", "last"])

        assert len(result) == 5
        assert result[1] == [0.0] * 4
        assert result[3] == [0.0] * 4
        assert result[0] == [4.0] * 4
        assert result[4] == [4.0] * 4

    @pytest.mark.asyncio
    async def test_empty_text_is_zero_vector_without_encoding(self) -> None:
        provider = _StubProvider()
        result = await provider.embed(["", "   ", "text"])

        assert result[0] == [0.0] * 4
        assert result[1] == [0.0] * 4
        assert provider.encoded == ["text"]

    @pytest.mark.asyncio
    async def test_empty_batch_does_not_load_model(self) -> None:
        provider = _StubProvider()
        assert await provider.embed([]) == []
        assert provider.load_calls == 0
        assert provider.is_loaded is False

    @pytest.mark.asyncio
    async def test_text_is_trimmed_and_truncated(self) -> None:
        provider = _StubProvider(max_chars=5)
        await provider.embed(["   abcdefghij   "])
        assert provider.encoded == ["abcde"]

    @pytest.mark.asyncio
    async def test_wrong_dimension_is_item_failure(self) -> None:
        provider = _StubProvider()
        with patch.object(provider, "_encode", return_value=[1.0, 2.0]):
            result = await provider.embed(["text"])
        assert result == [[0.0] * 4]

    @pytest.mark.asyncio
    async def test_concurrent_first_calls_load_model_once(self) -> None:
        provider = _StubProvider()
        provider.load_delay = 0.05

        results = await asyncio.gather(*(provider.embed([f"text {i}"]) for i in range(5)))

        assert provider.load_calls == 1
        assert all(len(r) == 1 for r in results)
        assert provider.is_loaded is True

    @pytest.mark.asyncio
    async def test_load_failure_raises_and_next_call_retries(self) -> None:
        provider = _StubProvider()
        provider.load_error = OSError("weights missing")

        with pytest.raises(EmbeddingModelLoadError) as exc_info:
            await provider.embed(["text"])
        assert "weights missing" in str(exc_info.value)
        assert provider.is_loaded is False

        provider.load_error = None
        result = await provider.embed(["text"])
        assert provider.load_calls == 2
        assert result == [[4.0] * 4]

    @pytest.mark.asyncio
    async def test_progress_events(self, recorder) -> None:
        provider = _StubProvider(fail_on={"bad"})
        await provider.embed(["good", "bad"], progress=ProgressReporter(recorder))

        embedding_messages = recorder.messages("embedding")
        assert embedding_messages[0] == "Processing 2 texts for embedding..."
        assert "Generated embedding 1/2" in embedding_messages
        assert any(m.startswith("Error processing text 2") for m in embedding_messages)
        assert "processing" in recorder.types and "error" in recorder.types

    @pytest.mark.asyncio
    async def test_embed_single(self) -> None:
        provider = _StubProvider()
        assert await provider.embed_single("abc") == [3.0] * 4

    def test_describe_and_name(self) -> None:
        provider = _StubProvider(dimension=8, max_chars=256)
        assert provider.get_provider_name() == "stub_stub-model"
        assert provider.get_dimension() == 8
        assert provider.describe() == {
            "model": "org/stub-model",
            "backend": "stub",
            "dimensions": 8,
            "max_chars": 256,
            "loaded": False,
        }


# ======================================================================
# fastembed
# ======================================================================


class TestFastEmbedEmbeddingProvider:
    def test_defaults(self) -> None:
        provider = FastEmbedEmbeddingProvider()
        assert provider.get_dimension() == 384
        assert provider.get_provider_name() == "fastembed_all-MiniLM-L6-v2"

    def test_known_model_dimension(self) -> None:
        provider = FastEmbedEmbeddingProvider(model_name="BAAI/bge-base-en-v1.5")
        assert provider.get_dimension() == 768

    @pytest.mark.asyncio
    async def test_embed_uses_model_output(self) -> None:
        model = MagicMock()
        model.embed.side_effect = lambda texts: iter([np.full(384, 0.5, dtype=np.float32)])

        provider = FastEmbedEmbeddingProvider()
        with patch.object(provider, "_create_model", return_value=model):
            result = await provider.embed(["hello", "world"])

        assert len(result) == 2
        assert len(result[0]) == 384
        assert result[0][0] == pytest.approx(0.5)
        assert model.embed.call_count == 2


# ======================================================================
# sentence-transformers
# ======================================================================


class TestSentenceTransformerEmbeddingProvider:
    def test_defaults(self) -> None:
        provider = SentenceTransformerEmbeddingProvider()
        assert provider.get_dimension() == 384
        assert provider.get_provider_name() == "sentence_transformer_all-MiniLM-L6-v2"

    @pytest.mark.asyncio
    async def test_embed_normalises(self) -> None:
        model = MagicMock()
        model.encode.return_value = np.ones((1, 384), dtype=np.float32)

        provider = SentenceTransformerEmbeddingProvider()
        with patch.object(provider, "_create_model", return_value=model):
            vector = await provider.embed_single("hello")

        assert len(vector) == 384
        model.encode.assert_called_once_with(
            ["hello"], normalize_embeddings=True, show_progress_bar=False
        )

    @pytest.mark.asyncio
    async def test_encode_error_yields_zero_vector(self) -> None:
        model = MagicMock()
        model.encode.side_effect = RuntimeError("CUDA out of memory")

        provider = SentenceTransformerEmbeddingProvider()
        with patch.object(provider, "_create_model", return_value=model):
            result = await provider.embed(["a text"])

        assert result == [[0.0] * 384]
