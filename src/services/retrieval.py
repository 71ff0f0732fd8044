"""Retrieval engine: over-fetch, filter, truncate, and group by source.

A plain k-NN query for ``top_k`` results would often come back short
once the score threshold and the optional source filter have removed
their share.  The engine therefore asks the vector store for a larger
pool first and trims locally:

    candidates = max(min_candidates, top_k * candidate_multiplier)
    limit      = top_k * fetch_multiplier

Post-filters, in order: source regex (case-insensitive), score threshold
(strictly greater than), truncation to ``top_k``.
"""

from __future__ import annotations

import re

import structlog

from src.interfaces.vector_store_provider import IVectorStoreProvider
from src.models.rag import RetrievedContext
from src.utils.errors import InvalidSourceFilterError
from src.utils.logging import get_logger

logger: structlog.BoundLogger = get_logger(__name__)


class RetrievalEngine:
    """Ranks and filters vector-store matches for a query vector.

    Parameters
    ----------
    vector_store:
        Store queried for similarity matches.
    score_threshold:
        Results scoring at or below this value are discarded.
    min_candidates:
        Floor for the candidate pool size.
    candidate_multiplier, fetch_multiplier:
        Over-fetch factors applied to ``top_k``.
    """

    def __init__(
        self,
        vector_store: IVectorStoreProvider,
        score_threshold: float = 0.4,
        min_candidates: int = 100,
        candidate_multiplier: int = 10,
        fetch_multiplier: int = 3,
    ) -> None:
        self._vector_store = vector_store
        self._score_threshold = score_threshold
        self._min_candidates = min_candidates
        self._candidate_multiplier = candidate_multiplier
        self._fetch_multiplier = fetch_multiplier

    @property
    def score_threshold(self) -> float:
        return self._score_threshold

    async def search(
        self,
        query_vector: list[float],
        top_k: int = 5,
        source_filter: str | None = None,
    ) -> list[RetrievedContext]:
        """Return at most *top_k* contexts scoring above the threshold.

        Raises
        ------
        InvalidSourceFilterError
            If *source_filter* is not a valid regular expression.
        """
        pattern = self._compile_filter(source_filter)
        if top_k <= 0:
            return []

        num_candidates = max(self._min_candidates, top_k * self._candidate_multiplier)
        limit = top_k * self._fetch_multiplier
        raw = await self._vector_store.similarity_search(
            query_vector,
            num_candidates=num_candidates,
            limit=limit,
        )

        results = raw
        if pattern is not None:
            results = [ctx for ctx in results if pattern.search(ctx.source)]
        results = [ctx for ctx in results if ctx.score > self._score_threshold]
        results = results[:top_k]

        logger.info(
            "retrieval_filtered",
            num_candidates=num_candidates,
            fetched=len(raw),
            returned=len(results),
            source_filter=source_filter,
            top_score=results[0].score if results else 0.0,
        )
        return results

    @staticmethod
    def _compile_filter(source_filter: str | None) -> re.Pattern[str] | None:
        if not source_filter:
            return None
        try:
            return re.compile(source_filter, re.IGNORECASE)
        except re.error as exc:
            raise InvalidSourceFilterError(
                message=f"Invalid source filter {source_filter!r}: {exc}",
            ) from exc


def group_by_source(contexts: list[RetrievedContext]) -> dict[str, list[RetrievedContext]]:
    """Partition *contexts* by ``source``, strongest source first.

    Groups are ordered by the descending sum of their members' scores;
    ties keep first-seen order.  Members keep their relative order.
    """
    groups: dict[str, list[RetrievedContext]] = {}
    for ctx in contexts:
        groups.setdefault(ctx.source, []).append(ctx)

    ranked = sorted(
        groups.items(),
        key=lambda item: sum(ctx.score for ctx in item[1]),
        reverse=True,
    )
    return dict(ranked)


def primary_contexts(grouped: dict[str, list[RetrievedContext]]) -> list[RetrievedContext]:
    """Return the member list of the top-ranked source group, or ``[]``."""
    return next(iter(grouped.values()), [])
