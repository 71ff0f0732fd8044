"""Text helpers shared by the answer extractors.

OCR output is noisy: stray symbols, runs of whitespace, and words glued
together where a line break was lost ("DataScience").  :func:`clean_text`
repairs the common cases.  It drops ``%``, currency symbols and similar, so
extractors that look for those work on the raw text instead.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

_NOISE = re.compile(r"[^\w\s.,!?@()\-:/]")
_WHITESPACE = re.compile(r"\s+")
_GLUED_WORDS = re.compile(r"([a-z])([A-Z])")
_SENTENCE_SPLIT = re.compile(r"[.!?]+")
_HAS_LETTER = re.compile(r"[A-Za-z]")

# Resume section headings, matched in upper case (or Title case with a colon).
KNOWN_HEADINGS: tuple[str, ...] = (
    "TECHNICAL SKILLS",
    "SKILLS",
    "PROJECTS",
    "EDUCATION",
    "EXPERIENCE",
    "SUMMARY",
    "CERTIFICATIONS",
    "ACHIEVEMENTS",
    "OBJECTIVE",
    "CONTACT",
)


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip()


def clean_text(text: str) -> str:
    """Strip OCR noise, collapse whitespace and split glued camelCase words."""
    text = _NOISE.sub(" ", text)
    text = _WHITESPACE.sub(" ", text)
    text = _GLUED_WORDS.sub(r"\1 \2", text)
    return text.strip()


def split_sentences(text: str, min_length: int) -> list[str]:
    """Split on ``.``, ``!`` and ``?`` and keep trimmed sentences that are
    longer than *min_length* and contain a letter."""
    sentences = []
    for part in _SENTENCE_SPLIT.split(text):
        sentence = part.strip()
        if len(sentence) > min_length and _HAS_LETTER.search(sentence):
            sentences.append(sentence)
    return sentences


def dedupe(items: Iterable[str]) -> list[str]:
    """Remove duplicates, keeping first-seen order."""
    return list(dict.fromkeys(items))


def _heading_pattern(heading: str) -> str:
    return rf"\b{re.escape(heading)}\b|\b{re.escape(heading.title())}\s*:"


_ANY_HEADING = re.compile("|".join(_heading_pattern(h) for h in KNOWN_HEADINGS))


def extract_section(text: str, headings: Iterable[str], to_end: bool = False) -> str | None:
    """Return the text following the first of *headings* found in *text*.

    The section runs to the next known heading, or to the end of the text
    when *to_end* is set.  Returns ``None`` when no heading is present or
    the section is empty.
    """
    start_pattern = re.compile("|".join(_heading_pattern(h) for h in headings))
    match = start_pattern.search(text)
    if match is None:
        return None

    body = text[match.end() :]
    if not to_end:
        following = _ANY_HEADING.search(body)
        if following is not None:
            body = body[: following.start()]

    body = collapse_whitespace(body).lstrip(":-| ").strip()
    return body or None
