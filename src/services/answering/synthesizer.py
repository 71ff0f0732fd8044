"""Rule-based answer synthesis over retrieved contexts.

There is no language model here.  The question is matched against an
ordered table of :class:`IntentStrategy` entries, each pairing a predicate
(usually "the question mentions one of these words") with an extractor
that pulls matching material out of the contexts:

    certificate > name > course > organization > date > percentage >
    amount > comparison > chart > location > contact > skills > projects >
    education > summary > generic

The first strategy whose predicate holds *and* whose extractor returns
something wins.  A strategy that matches the question but finds nothing
falls through to the next one.  The generic strategy always produces an
answer, so once there is at least one context, synthesis never fails.

Most extractors read the primary source only (the best-scoring document);
comparisons read every retrieved context.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from functools import cached_property

import structlog

from src.models.rag import ContentType, DocumentType, RetrievedContext
from src.services.answering import extractors, formatter
from src.services.answering.text_utils import clean_text, collapse_whitespace, dedupe, split_sentences
from src.utils.logging import get_logger

logger: structlog.BoundLogger = get_logger(__name__)

NO_CONTEXT_ANSWER = "No relevant context found."

_CHART_EXCERPT_CHARS = 300
_GENERIC_EXCERPT_CHARS = 100
_SUMMARY_MAX_POINTS = 4


class QuestionIntent(str, Enum):  # noqa: UP042
    """What the question is asking for, in dispatch order."""

    CERTIFICATE = "certificate"
    NAME = "name"
    COURSE = "course"
    ORGANIZATION = "organization"
    DATE = "date"
    PERCENTAGE = "percentage"
    AMOUNT = "amount"
    COMPARISON = "comparison"
    CHART = "chart"
    LOCATION = "location"
    CONTACT = "contact"
    SKILLS = "skills"
    PROJECTS = "projects"
    EDUCATION = "education"
    SUMMARY = "summary"
    GENERIC = "generic"


@dataclass
class SynthesisContext:
    """Everything a strategy may look at, with derived texts computed once."""

    question: str
    primary_contexts: list[RetrievedContext]
    doc_type: DocumentType
    all_contexts: list[RetrievedContext] = field(default_factory=list)

    @cached_property
    def question_lower(self) -> str:
        return self.question.lower()

    @cached_property
    def best_clean(self) -> str:
        """Cleaned text of the highest-ranked primary context."""
        return clean_text(self.primary_contexts[0].text)

    @cached_property
    def primary_text(self) -> str:
        return collapse_whitespace(" ".join(ctx.text for ctx in self.primary_contexts))

    @cached_property
    def primary_clean(self) -> str:
        return clean_text(self.primary_text)

    @cached_property
    def all_text(self) -> str:
        contexts = self.all_contexts or self.primary_contexts
        return collapse_whitespace(" ".join(ctx.text for ctx in contexts))


@dataclass(frozen=True)
class IntentStrategy:
    intent: QuestionIntent
    predicate: Callable[[SynthesisContext], bool]
    extract: Callable[[SynthesisContext], str | None]


def mentions(*keywords: str) -> Callable[[SynthesisContext], bool]:
    """Predicate that holds when the lowercased question contains any keyword."""

    def _predicate(ctx: SynthesisContext) -> bool:
        return any(keyword in ctx.question_lower for keyword in keywords)

    return _predicate


# ---------------------------------------------------------------------------
# Extractors, one per intent
# ---------------------------------------------------------------------------


def _is_certificate_question(ctx: SynthesisContext) -> bool:
    # The raw keyword check wins even when the classifier said otherwise.
    return ctx.doc_type is DocumentType.CERTIFICATE or (
        "certificate" in ctx.question_lower or "certification" in ctx.question_lower
    )


def _certificate(ctx: SynthesisContext) -> str | None:
    info = extractors.extract_certificate_info(ctx.primary_clean)
    if info.has_info:
        return formatter.format_certificate(info)

    sentences = split_sentences(ctx.primary_clean, min_length=15)[:3]
    if sentences:
        return formatter.bullet_list("Certificate Details", sentences)
    return None


def _names(ctx: SynthesisContext) -> str | None:
    names = extractors.extract_names(ctx.best_clean)
    return formatter.format_names(names) if names else None


def _bullets(title: str, items: list[str]) -> str | None:
    return formatter.bullet_list(title, items) if items else None


def _courses(ctx: SynthesisContext) -> str | None:
    return _bullets("Course/Training Information", extractors.extract_courses(ctx.best_clean))


def _organizations(ctx: SynthesisContext) -> str | None:
    return _bullets("Organization/Company", extractors.extract_organizations(ctx.best_clean))


def _dates(ctx: SynthesisContext) -> str | None:
    return _bullets("Dates mentioned", extractors.extract_dates(ctx.best_clean))


def _percentages(ctx: SynthesisContext) -> str | None:
    return _bullets("Percentages / Growth", extractors.extract_percentages(ctx.primary_text))


def _amounts(ctx: SynthesisContext) -> str | None:
    return _bullets("Amounts / Values", extractors.extract_amounts(ctx.primary_text))


def _comparisons(ctx: SynthesisContext) -> str | None:
    return _bullets("Comparisons", extractors.extract_comparisons(ctx.all_text))


def _chart(ctx: SynthesisContext) -> str | None:
    contexts = ctx.all_contexts or ctx.primary_contexts
    chart = next((c for c in contexts if c.type is ContentType.CHART_OCR), None)
    if chart is None:
        return None

    excerpt = clean_text(chart.text)
    if not excerpt:
        return None
    if len(excerpt) > _CHART_EXCERPT_CHARS:
        excerpt = excerpt[:_CHART_EXCERPT_CHARS] + "..."
    return formatter.labelled_block("Chart Information", excerpt)


def _locations(ctx: SynthesisContext) -> str | None:
    return _bullets("Location", extractors.extract_locations(ctx.primary_text))


def _contact(ctx: SynthesisContext) -> str | None:
    return _bullets("Contact Information", extractors.extract_contact_block(ctx.primary_text))


def _skills(ctx: SynthesisContext) -> str | None:
    return _bullets("Skills", extractors.extract_skills(ctx.primary_text))


def _projects(ctx: SynthesisContext) -> str | None:
    section = extractors.extract_projects(ctx.primary_text)
    return formatter.labelled_block("Projects", section) if section else None


def _education(ctx: SynthesisContext) -> str | None:
    section = extractors.extract_education(ctx.primary_text)
    return formatter.labelled_block("Education", section) if section else None


def _summary(ctx: SynthesisContext) -> str | None:
    points: list[str] = []
    for context in ctx.primary_contexts:
        points.extend(split_sentences(clean_text(context.text), min_length=20)[:2])
    points = dedupe(points)[:_SUMMARY_MAX_POINTS]
    return _bullets("Document Summary", points)


def _generic(ctx: SynthesisContext) -> str:
    """Best sentence of the top primary context by question-word overlap."""
    text = ctx.best_clean
    sentences = split_sentences(text, min_length=10)
    question_words = [word for word in ctx.question_lower.split() if len(word) > 3]

    best = sentences[0] if sentences else text[:_GENERIC_EXCERPT_CHARS]
    best_hits = 0
    for sentence in sentences:
        lowered = sentence.lower()
        hits = sum(1 for word in question_words if word in lowered)
        # Strictly greater: the earliest sentence wins ties.
        if hits > best_hits:
            best, best_hits = sentence, hits

    return formatter.labelled_block("Based on the document", best.strip())


DEFAULT_STRATEGIES: tuple[IntentStrategy, ...] = (
    IntentStrategy(QuestionIntent.CERTIFICATE, _is_certificate_question, _certificate),
    IntentStrategy(QuestionIntent.NAME, mentions("name", "who"), _names),
    IntentStrategy(QuestionIntent.COURSE, mentions("course", "training", "program"), _courses),
    IntentStrategy(
        QuestionIntent.ORGANIZATION,
        mentions("company", "organization", "organisation", "issued by", "institution"),
        _organizations,
    ),
    IntentStrategy(QuestionIntent.DATE, mentions("date", "when", "year", "time"), _dates),
    IntentStrategy(
        QuestionIntent.PERCENTAGE,
        mentions("percent", "%", "growth", "increase", "decrease", "decline", "margin"),
        _percentages,
    ),
    IntentStrategy(
        QuestionIntent.AMOUNT,
        mentions(
            "amount", "value", "revenue", "cost", "price", "profit", "sales", "total", "how much"
        ),
        _amounts,
    ),
    IntentStrategy(
        QuestionIntent.COMPARISON,
        mentions("compare", "vs", "versus", "difference", "higher", "lower", "more than", "less than"),
        _comparisons,
    ),
    IntentStrategy(
        QuestionIntent.CHART,
        mentions("chart", "graph", "trend", "plot", "figure", "axis"),
        _chart,
    ),
    IntentStrategy(
        QuestionIntent.LOCATION,
        mentions("where", "location", "address", "city", "located"),
        _locations,
    ),
    IntentStrategy(
        QuestionIntent.CONTACT,
        mentions("contact", "email", "phone", "linkedin", "github", "mobile"),
        _contact,
    ),
    IntentStrategy(
        QuestionIntent.SKILLS,
        mentions("skill", "technolog", "tech stack", "tools", "languages"),
        _skills,
    ),
    IntentStrategy(QuestionIntent.PROJECTS, mentions("project"), _projects),
    IntentStrategy(
        QuestionIntent.EDUCATION,
        mentions("education", "degree", "university", "college", "qualification"),
        _education,
    ),
    IntentStrategy(
        QuestionIntent.SUMMARY,
        mentions("summary", "summarize", "summarise", "overview", "about", "what is", "describe"),
        _summary,
    ),
    IntentStrategy(QuestionIntent.GENERIC, lambda ctx: True, _generic),
)


class AnswerSynthesizer:
    """Dispatches a question over an ordered strategy table.

    Parameters
    ----------
    strategies:
        Strategy table in precedence order.  Must end with a strategy that
        always answers; defaults to :data:`DEFAULT_STRATEGIES`.
    """

    def __init__(self, strategies: tuple[IntentStrategy, ...] = DEFAULT_STRATEGIES) -> None:
        self._strategies = strategies

    @property
    def strategies(self) -> tuple[IntentStrategy, ...]:
        return self._strategies

    def synthesize(
        self,
        question: str,
        primary_contexts: list[RetrievedContext],
        doc_type: DocumentType,
        all_contexts: list[RetrievedContext] | None = None,
    ) -> str:
        """Build an answer string from the primary source's contexts."""
        if not primary_contexts:
            return NO_CONTEXT_ANSWER

        ctx = SynthesisContext(
            question=question,
            primary_contexts=primary_contexts,
            doc_type=doc_type,
            all_contexts=list(all_contexts or primary_contexts),
        )

        for strategy in self._strategies:
            if not strategy.predicate(ctx):
                continue
            answer = strategy.extract(ctx)
            if answer:
                logger.info(
                    "answer_synthesized",
                    intent=strategy.intent.value,
                    doc_type=doc_type.value,
                    contexts=len(primary_contexts),
                )
                return answer
            logger.debug("intent_extraction_empty", intent=strategy.intent.value)

        # Only reachable with a custom table lacking a catch-all strategy.
        return _generic(ctx)
