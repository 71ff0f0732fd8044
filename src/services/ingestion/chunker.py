"""Text chunking with overlapping fixed-size word windows.

Splits extracted text into :class:`~src.models.rag.ChunkDraft` objects sized
for a small embedding model (800 words per window with 120 words of
overlap by default).

Windows start at ``0, stride, 2*stride, ...`` with
``stride = max(1, max_words - overlap)``, so consecutive windows share
exactly ``overlap`` words and every word lands in at least one window.  A
concept that straddles a boundary therefore stays retrievable from the
window on either side.

OCR output has no reliable paragraph or sentence structure, which is why
windows are counted in whitespace-separated words rather than aligned to
paragraphs.  Tables get their own variant that keeps the header row with
every group of rows.
"""

from __future__ import annotations

import re

import structlog

from src.models.rag import ChunkDraft, ContentType

logger = structlog.get_logger(logger_name=__name__)

_LINE_SPLIT = re.compile(r"\r?\n")


class TextChunker:
    """Splits text into overlapping word windows.

    Parameters
    ----------
    max_words:
        Maximum number of words per window (default 800).
    overlap:
        Number of words shared by consecutive windows (default 120).
    table_max_rows:
        Data rows per table chunk, excluding the repeated header (default 25).
    """

    def __init__(
        self,
        max_words: int = 800,
        overlap: int = 120,
        table_max_rows: int = 25,
    ) -> None:
        if max_words < 1:
            raise ValueError("max_words must be at least 1")
        if overlap < 0:
            raise ValueError("overlap must not be negative")
        if table_max_rows < 1:
            raise ValueError("table_max_rows must be at least 1")
        self._max_words = max_words
        self._overlap = overlap
        self._table_max_rows = table_max_rows

    def chunk(
        self,
        text: str,
        source: str,
        page: int | None = None,
        content_type: ContentType = ContentType.TEXT,
        max_words: int | None = None,
        overlap: int | None = None,
    ) -> list[ChunkDraft]:
        """Split *text* into ordered, overlapping word windows.

        Parameters
        ----------
        text:
            Raw extracted text.
        source:
            Originating file name, copied onto every draft.
        page:
            Page number, or ``None`` for whole-document text.
        content_type:
            Content type copied onto every draft.
        max_words, overlap:
            Per-call overrides of the instance defaults.

        Returns
        -------
        list[ChunkDraft]
            Drafts in reading order.  Empty or whitespace-only text yields
            an empty list.
        """
        max_len = max_words if max_words is not None else self._max_words
        over = overlap if overlap is not None else self._overlap
        stride = max(1, max_len - over)

        words = text.split()
        drafts: list[ChunkDraft] = []

        start = 0
        while start < len(words):
            window = words[start : start + max_len]
            drafts.append(
                ChunkDraft(
                    source=source,
                    page=page,
                    type=content_type,
                    text=" ".join(window),
                )
            )
            # The last word is already covered; a further window would only repeat it.
            if start + max_len >= len(words):
                break
            start += stride

        logger.debug(
            "text_chunked",
            source=source,
            page=page,
            word_count=len(words),
            chunk_count=len(drafts),
        )
        return drafts

    def chunk_table(
        self,
        csv_text: str,
        source: str,
        page: int | None = None,
    ) -> list[ChunkDraft]:
        """Split delimited table text into row groups with a repeated header.

        The first line is treated as the header.  Each group of up to
        ``table_max_rows`` following rows becomes one chunk whose text is
        ``"Table snippet:\\n<header>\\n<rows>"`` and whose metadata carries
        the header.  Blank lines are dropped.
        """
        rows = [row for row in _LINE_SPLIT.split(csv_text) if row.strip()]
        if not rows:
            return []

        header, body = rows[0], rows[1:]
        drafts: list[ChunkDraft] = []
        for start in range(0, len(body), self._table_max_rows):
            group = body[start : start + self._table_max_rows]
            drafts.append(
                ChunkDraft(
                    source=source,
                    page=page,
                    type=ContentType.TABLE,
                    text=f"Table snippet:\n{header}\n" + "\n".join(group),
                    metadata={"header": header},
                )
            )

        logger.debug("table_chunked", source=source, rows=len(body), chunk_count=len(drafts))
        return drafts
