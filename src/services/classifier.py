"""Keyword-based document type classifier.

Labels a set of retrieved contexts with a coarse :class:`DocumentType`.
The concatenated, lowercased context text is checked against fixed
keyword sets in priority order; the first set with any substring hit
wins.  Certificates come first, so a certificate that mentions revenue
is still a certificate.
"""

from __future__ import annotations

from collections.abc import Iterable

from src.models.rag import DocumentType, RetrievedContext

_KEYWORD_RULES: tuple[tuple[DocumentType, tuple[str, ...]], ...] = (
    (
        DocumentType.CERTIFICATE,
        ("certificate", "certification", "awarded", "presented", "issued", "diploma", "achievement"),
    ),
    (DocumentType.FINANCIAL, ("revenue", "profit", "sales", "financial")),
    (DocumentType.RESUME, ("skills", "projects", "education", "experience")),
    (DocumentType.CHART, ("chart", "graph", "axis", "legend")),
    (DocumentType.REPORT, ("report", "analysis")),
)


def classify_text(text: str) -> DocumentType:
    """Classify a single block of text."""
    lowered = text.lower()
    for doc_type, keywords in _KEYWORD_RULES:
        if any(keyword in lowered for keyword in keywords):
            return doc_type
    return DocumentType.GENERAL


class DocumentClassifier:
    """Deterministic classifier over retrieved contexts.  Holds no state."""

    def classify(self, contexts: Iterable[RetrievedContext]) -> DocumentType:
        return classify_text(" ".join(ctx.text for ctx in contexts))
