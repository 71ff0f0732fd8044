"""Progress event vocabulary shared by the ingestion and query pipelines.

Pipelines describe what they are doing with a small closed set of event
types.  How the events reach a user (WebSocket, polling, console) is decided
by transport adapters in ``src/api``; the pipelines only build events.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ProgressEventType(str, Enum):  # noqa: UP042 — StrEnum requires Python 3.11+
    """Kinds of checkpoint a pipeline can report."""

    INFO = "info"
    PROCESSING = "processing"
    SUCCESS = "success"
    ERROR = "error"
    COMPLETE = "complete"


class ProgressEvent(BaseModel):
    """A single checkpoint: a type, a short label and a human-readable message."""

    model_config = ConfigDict(frozen=True)

    type: ProgressEventType
    label: str = ""
    message: str = ""
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(tz=timezone.utc)  # noqa: UP017
    )
