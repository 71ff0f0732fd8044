"""Question answering over the indexed corpus.

Data flow for one question:

  1. EMBED      -- the question becomes a single query vector.
  2. RETRIEVE   -- the retrieval engine over-fetches, filters by score and
                   optional source regex, and truncates to ``top_k``.
  3. GROUP      -- contexts are partitioned by source; the best-scoring
                   source is the primary document.
  4. CLASSIFY   -- the primary contexts get a coarse document type.
  5. SYNTHESIZE -- the rule-based synthesizer builds the answer.

The result carries the answer plus the full, ungrouped context list.  The
service holds no per-request state, so one instance serves concurrent
requests.
"""

from __future__ import annotations

import structlog

from src.interfaces.embedding_provider import IEmbeddingProvider
from src.models.rag import QueryResult
from src.pipeline.progress_tracker import ProgressReporter
from src.services.answering import NO_CONTEXT_ANSWER, AnswerSynthesizer
from src.services.classifier import DocumentClassifier
from src.services.retrieval import RetrievalEngine, group_by_source, primary_contexts
from src.utils.logging import get_logger

logger: structlog.BoundLogger = get_logger(__name__)


class QueryService:
    """Composes embedding, retrieval, classification and synthesis."""

    def __init__(
        self,
        embedding_provider: IEmbeddingProvider,
        retrieval_engine: RetrievalEngine,
        classifier: DocumentClassifier | None = None,
        synthesizer: AnswerSynthesizer | None = None,
        default_top_k: int = 5,
    ) -> None:
        self._embedding_provider = embedding_provider
        self._retrieval = retrieval_engine
        self._classifier = classifier or DocumentClassifier()
        self._synthesizer = synthesizer or AnswerSynthesizer()
        self._default_top_k = default_top_k

    async def query(
        self,
        question: str,
        top_k: int | None = None,
        source_filter: str | None = None,
        progress: ProgressReporter | None = None,
    ) -> QueryResult:
        """Answer *question* from the most similar stored chunks.

        Raises
        ------
        src.utils.errors.EmbeddingModelLoadError
            If the embedding model cannot be loaded.
        src.utils.errors.InvalidSourceFilterError
            If *source_filter* is not a valid regular expression.
        """
        progress = progress or ProgressReporter()
        top_k = top_k or self._default_top_k

        if not question.strip():
            return QueryResult(answer=NO_CONTEXT_ANSWER, contexts=[])

        await progress.processing("query", "Searching indexed documents...")
        query_vector = await self._embedding_provider.embed_single(question)
        contexts = await self._retrieval.search(query_vector, top_k=top_k, source_filter=source_filter)

        grouped = group_by_source(contexts)
        primary = primary_contexts(grouped)
        doc_type = self._classifier.classify(primary)
        answer = self._synthesizer.synthesize(question, primary, doc_type, all_contexts=contexts)

        logger.info(
            "query_complete",
            question_length=len(question),
            contexts=len(contexts),
            sources=len(grouped),
            primary_source=next(iter(grouped), None),
            doc_type=doc_type.value,
        )
        await progress.success("query", f"Answered from {len(contexts)} contexts")
        return QueryResult(answer=answer, contexts=contexts)
