"""Regex extractors that pull answer material out of retrieved text.

Every function here is pure: text in, list (or record) out, no logging and
no I/O.  An empty result means "nothing found", which lets the
synthesizer fall through to the next intent handler.

Where a field has several patterns, they are tried in order and the first
one that matches wins.  List extractors de-duplicate while keeping
first-seen order.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from src.services.answering.text_utils import (
    KNOWN_HEADINGS,
    dedupe,
    extract_section,
)

UNKNOWN = "Unknown"

_KNOWN_ORGANIZATIONS = r"Infosys|Google|Microsoft|Amazon|IBM|Oracle|Coursera|edX|Udemy"
_KNOWN_COURSES = (
    r"AI-first Software Engineering|Software Engineering|Data Science|Machine Learning|Cloud Computing"
)
_PERSON = r"[A-Z][a-z]+(?:\s+[A-Z][a-z]+)*"
_FULL_NAME = r"[A-Z][a-z]+(?:\s+[A-Z][a-z]+){1,2}"
_MONTH = r"(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)[a-z]*\.?"
_MONTH_DATE = rf"{_MONTH}\s+\d{{1,2}},?\s+\d{{4}}"
_NUMBER = r"\d[\d,]*(?:\.\d+)?"
_SCALE = r"(?:\s?(?:million|billion|thousand|mn|bn|lakh|crore|[kKmMbB])\b)?"
_CURRENCY = r"[$€£₹¥]|\b(?:USD|EUR|GBP|INR|Rs\.?)\s?"

# ---------------------------------------------------------------------------
# Certificates
# ---------------------------------------------------------------------------

_RECIPIENT_PATTERNS = (
    re.compile(rf"(?i:awarded to|presented to|certifies that|conferred upon)\s+({_PERSON})"),
    re.compile(
        rf"({_FULL_NAME})\s+(?i:was|has been|is hereby|is)\s+(?i:awarded|presented|conferred)"
    ),
    re.compile(rf"({_FULL_NAME})(?=\s+for\s+successfully)"),
)

_ISSUER_PATTERNS = (
    re.compile(rf"\b(?i:{_KNOWN_ORGANIZATIONS})\b"),
    re.compile(r"(?i:issued by)\s+([A-Z][\w&.]*(?:\s+[A-Z][\w&.]*){0,4})"),
    re.compile(r"\b([A-Z][a-z]+(?:\s+Professional)?\s+(?:University|Institute|College|Academy))\b"),
)

_COURSE_PATTERNS = (
    re.compile(
        r"(?i:completing the course|completion of the course|course in|program in|programme in)"
        r"\s+([^.!?]+)"
    ),
    re.compile(rf"(?i:{_KNOWN_COURSES})"),
)
# A captured course phrase ends where the issuer/date clause begins.
_COURSE_TAIL = re.compile(r"\s+(?:issued|by|from|on|with|at|dated)\b|,", re.IGNORECASE)

_CERTIFICATE_DATE_PATTERNS = (
    re.compile(rf"\b(?i:issued on|date|on)\s*:?\s*({_MONTH_DATE})"),
    re.compile(rf"\b({_MONTH_DATE})"),
)


@dataclass
class CertificateInfo:
    """Structured certificate fields; unresolved fields stay ``UNKNOWN``."""

    type: str = UNKNOWN
    issuer: str = UNKNOWN
    recipient: str = UNKNOWN
    course: str = UNKNOWN
    date: str = UNKNOWN

    @property
    def has_info(self) -> bool:
        return any(
            value != UNKNOWN for value in (self.issuer, self.recipient, self.course, self.date)
        )


def _first_match(patterns: tuple[re.Pattern[str], ...], text: str) -> str | None:
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            value = match.group(1) if match.groups() else match.group(0)
            value = value.strip()
            if value:
                return value
    return None


def _certificate_type(text: str, course: str) -> str:
    lowered = text.lower()
    if "software engineering" in lowered:
        return "Software Engineering Certificate"
    if "internship" in lowered:
        return "Internship Certificate"
    if "course completion" in lowered:
        return "Course Completion Certificate"
    if course != UNKNOWN:
        return "Professional Certificate"
    return UNKNOWN


def extract_certificate_info(text: str) -> CertificateInfo:
    """Resolve recipient, issuer, course, date and type from certificate text."""
    info = CertificateInfo()
    info.recipient = _first_match(_RECIPIENT_PATTERNS, text) or UNKNOWN
    info.issuer = _first_match(_ISSUER_PATTERNS, text) or UNKNOWN

    course = _first_match(_COURSE_PATTERNS, text)
    if course:
        course = _COURSE_TAIL.split(course, maxsplit=1)[0].strip()
    info.course = course or UNKNOWN

    info.date = _first_match(_CERTIFICATE_DATE_PATTERNS, text) or UNKNOWN
    info.type = _certificate_type(text, info.course)
    return info


# ---------------------------------------------------------------------------
# Names, courses, organizations, dates
# ---------------------------------------------------------------------------

_NAME_PATTERNS = (
    re.compile(r"\b([A-Z][a-z]+\s+[A-Z][a-z]+(?:\s+[A-Z][a-z]+)?)\b"),
    re.compile(rf"(?i:awarded to|presented to)\s+({_PERSON})"),
)


def extract_names(text: str) -> list[str]:
    """Capitalised word pairs/triples plus "awarded to X" recipients."""
    names = []
    for pattern in _NAME_PATTERNS:
        for match in pattern.finditer(text):
            name = match.group(1).strip()
            if 3 < len(name) < 50:
                names.append(name)
    return dedupe(names)


_COURSE_LIST_PATTERNS = (
    re.compile(rf"({_KNOWN_COURSES})", re.IGNORECASE),
    re.compile(r"(?:course|training|program)\s*:\s*([^.!?\n]+)", re.IGNORECASE),
)


def extract_courses(text: str) -> list[str]:
    courses = []
    for pattern in _COURSE_LIST_PATTERNS:
        for match in pattern.finditer(text):
            course = match.group(1).strip()
            if len(course) > 5:
                courses.append(course)
    return dedupe(courses)


_ORGANIZATION_PATTERNS = (
    re.compile(rf"\b(?:{_KNOWN_ORGANIZATIONS})\b", re.IGNORECASE),
    re.compile(
        r"\b[A-Z][a-z]+\s+(?:University|Institute|College|Academy|Corporation|Limited|Ltd)\b"
    ),
)


def extract_organizations(text: str) -> list[str]:
    orgs = [m.group(0) for pattern in _ORGANIZATION_PATTERNS for m in pattern.finditer(text)]
    return dedupe(orgs)


_DATE_PATTERNS = (
    re.compile(rf"\b{_MONTH_DATE}", re.IGNORECASE),
    re.compile(r"\b\d{1,2}/\d{1,2}/\d{4}\b"),
    re.compile(r"\b\d{4}-\d{1,2}-\d{1,2}\b"),
)
_YEAR = re.compile(r"\b(?:19|20)\d{2}\b")


def extract_dates(text: str) -> list[str]:
    """Month-name, slash and ISO dates, then bare years not already covered."""
    dates = [m.group(0) for pattern in _DATE_PATTERNS for m in pattern.finditer(text)]
    for match in _YEAR.finditer(text):
        year = match.group(0)
        if not any(year in found for found in dates):
            dates.append(year)
    return dedupe(dates)


# ---------------------------------------------------------------------------
# Financial figures and comparisons
# ---------------------------------------------------------------------------

_PERCENT_PATTERNS = (
    re.compile(
        rf"\b(?:increased|decreased|increase|decrease|grew|growth|declined|decline|rose|fell|dropped)"
        rf"\s+(?:of|by)\s+-?{_NUMBER}\s?(?:%|percent\b)",
        re.IGNORECASE,
    ),
    re.compile(rf"[-+]?{_NUMBER}\s?(?:%|percent\b)", re.IGNORECASE),
)


def extract_percentages(text: str) -> list[str]:
    """Growth phrases first, then bare percentages not already quoted by one."""
    found: list[str] = []
    for pattern in _PERCENT_PATTERNS:
        for match in pattern.finditer(text):
            value = match.group(0).strip()
            if not any(value in existing for existing in found):
                found.append(value)
    return dedupe(found)


_AMOUNT_PATTERNS = (
    re.compile(
        rf"\b(?:revenue|sales|profit|income|cost|costs|price|total|amount|value|budget|expenses?)"
        rf"\s*(?:of|was|is|were|:|=)?\s*(?:{_CURRENCY})?{_NUMBER}{_SCALE}",
        re.IGNORECASE,
    ),
    re.compile(rf"(?:{_CURRENCY}){_NUMBER}{_SCALE}", re.IGNORECASE),
)
_MAX_AMOUNTS = 10


def extract_amounts(text: str) -> list[str]:
    """Keyword- or currency-prefixed figures, capped at the first ten."""
    found: list[str] = []
    for pattern in _AMOUNT_PATTERNS:
        for match in pattern.finditer(text):
            value = match.group(0).strip()
            if not any(value in existing for existing in found):
                found.append(value)
    return dedupe(found)[:_MAX_AMOUNTS]


_TOKEN = r"[\w$€£₹%.\-]+"
_PHRASE = rf"{_TOKEN}(?:\s+{_TOKEN}){{0,2}}"
_COMPARISON_PATTERNS = (
    re.compile(rf"{_PHRASE}\s+(?:vs\.?|versus)\s+{_PHRASE}", re.IGNORECASE),
    re.compile(
        rf"\b(?:increased|decreased|rose|fell|grew|dropped|went up|went down)"
        rf"\s+from\s+{_TOKEN}\s+to\s+{_TOKEN}",
        re.IGNORECASE,
    ),
    re.compile(
        rf"\b(?:higher|lower|greater|less|more)\s+than\s+{_TOKEN}(?:\s+{_TOKEN})?",
        re.IGNORECASE,
    ),
)


def extract_comparisons(text: str) -> list[str]:
    found = [
        m.group(0).strip().rstrip(".,;")
        for pattern in _COMPARISON_PATTERNS
        for m in pattern.finditer(text)
    ]
    return dedupe(found)


# ---------------------------------------------------------------------------
# Locations and contact details
# ---------------------------------------------------------------------------

_STREET_SUFFIX = r"Street|St|Avenue|Ave|Road|Rd|Boulevard|Blvd|Lane|Ln|Drive|Dr|Way|Court|Ct|Nagar|Marg"
_LOCATION_PATTERNS = (
    re.compile(rf"\b\d{{1,5}}\s+(?:[A-Z][a-z]+\s+){{1,3}}(?:{_STREET_SUFFIX})\b\.?"),
    re.compile(r"\b[A-Z][a-z]+(?:\s+[A-Z][a-z]+)?,\s+(?:[A-Z]{2}\b|[A-Z][a-z]+(?:\s+[A-Z][a-z]+)?)"),
)


def extract_locations(text: str) -> list[str]:
    found = [m.group(0).rstrip(".") for pattern in _LOCATION_PATTERNS for m in pattern.finditer(text)]
    return dedupe(found)


_CONTACT_LABEL = re.compile(r"(?i:linkedin|e-mail|email|github|mobile|phone)\s*:")
_CONTACT_FIELD = re.compile(
    r"(?i)\b(linkedin|e-mail|email|github|mobile|phone)\s*:\s*(\+?\d[\d\s\-()]{6,}\d|[^\s|,;]+)"
)
_NON_CONTACT_HEADING = re.compile(
    "|".join(rf"\b{re.escape(h)}\b" for h in KNOWN_HEADINGS if h != "CONTACT")
)
_CONTACT_LABELS = {
    "linkedin": "LinkedIn",
    "e-mail": "Email",
    "email": "Email",
    "github": "GitHub",
    "mobile": "Mobile",
    "phone": "Phone",
}


def extract_contact_block(text: str) -> list[str]:
    """``Label: value`` pairs from the contact block.

    The block starts at the first contact label and runs until the next
    section heading other than CONTACT.
    """
    start = _CONTACT_LABEL.search(text)
    if start is None:
        return []

    block = text[start.start() :]
    following = _NON_CONTACT_HEADING.search(block)
    if following is not None:
        block = block[: following.start()]

    fields = [
        f"{_CONTACT_LABELS[m.group(1).lower()]}: {m.group(2)}"
        for m in _CONTACT_FIELD.finditer(block)
    ]
    return dedupe(fields)


# ---------------------------------------------------------------------------
# Resume sections
# ---------------------------------------------------------------------------

_LIST_SEPARATORS = re.compile(r"\s*[,|•;]\s*")


def extract_skills(text: str) -> list[str]:
    section = extract_section(text, ("TECHNICAL SKILLS", "SKILLS"))
    if section is None:
        return []
    return dedupe(item for item in _LIST_SEPARATORS.split(section) if item)


def extract_projects(text: str) -> str | None:
    return extract_section(text, ("PROJECTS",))


def extract_education(text: str) -> str | None:
    return extract_section(text, ("EDUCATION",), to_end=True)
