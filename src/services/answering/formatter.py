"""Answer formatting: bold section labels and bullet lists."""

from __future__ import annotations

from src.services.answering.extractors import UNKNOWN, CertificateInfo

BULLET = "•"


def bold(label: str) -> str:
    return f"**{label}:**"


def bullet_list(title: str, items: list[str]) -> str:
    """``**Title:**`` followed by one bulleted line per item."""
    lines = [bold(title)]
    lines.extend(f"{BULLET} {item}" for item in items)
    return "\n".join(lines)


def labelled_block(title: str, body: str) -> str:
    return f"{bold(title)}\n{body}"


def format_certificate(info: CertificateInfo) -> str:
    """One ``**Label:** value`` line per resolved field; unknown fields are omitted."""
    fields = (
        ("Certificate Type", info.type),
        ("Issued By", info.issuer),
        ("Recipient", info.recipient),
        ("Course/Program", info.course),
        ("Date", info.date),
    )
    return "\n".join(f"{bold(label)} {value}" for label, value in fields if value != UNKNOWN)


def format_names(names: list[str]) -> str:
    if len(names) == 1:
        return f"The name mentioned is: **{names[0]}**"
    return f"Names mentioned: **{', '.join(names)}**"
