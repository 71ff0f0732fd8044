"""Progress reporting with callback-based listener notification.

Two pieces cooperate here:

- :class:`ProgressReporter` is what pipelines hold.  ``emit`` builds a
  :class:`ProgressEvent` and hands it to a sink.  It never raises: a sink
  failure is logged and swallowed, so a broken transport cannot fail an
  ingestion or a query.
- :class:`ProgressTracker` is the process-wide fan-out.  It records a
  bounded event history per session and forwards each event to the
  listeners registered for that session (WebSocket handlers, tests, ...).

    IngestionService ──emit()──→ ProgressReporter ──publish()──→ ProgressTracker
                                                                 ──callback()──→ WebSocket handler
"""

from __future__ import annotations

import asyncio
from collections import OrderedDict, deque
from collections.abc import Callable
from typing import Any

import structlog

from src.models.progress import ProgressEvent, ProgressEventType
from src.utils.logging import get_logger

_HISTORY_LIMIT = 200
_SESSION_LIMIT = 256

_logger: structlog.BoundLogger = get_logger(__name__)


class ProgressReporter:
    """Fire-and-forget event emitter handed to a single pipeline run.

    Parameters
    ----------
    sink:
        Sync or async callable accepting a :class:`ProgressEvent`.  When
        ``None`` events are only logged at debug level.
    """

    def __init__(self, sink: Callable[[ProgressEvent], Any] | None = None) -> None:
        self._sink = sink

    async def emit(self, event_type: ProgressEventType, label: str, message: str) -> None:
        event = ProgressEvent(type=event_type, label=label, message=message)
        _logger.debug("progress_event", type=event_type.value, label=label, message=message)
        if self._sink is None:
            return
        try:
            result = self._sink(event)
            if asyncio.iscoroutine(result):
                await result
        except Exception as exc:
            _logger.warning(
                "progress_sink_failed",
                type=event_type.value,
                label=label,
                error=str(exc),
            )

    async def info(self, label: str, message: str) -> None:
        await self.emit(ProgressEventType.INFO, label, message)

    async def processing(self, label: str, message: str) -> None:
        await self.emit(ProgressEventType.PROCESSING, label, message)

    async def success(self, label: str, message: str) -> None:
        await self.emit(ProgressEventType.SUCCESS, label, message)

    async def error(self, label: str, message: str) -> None:
        await self.emit(ProgressEventType.ERROR, label, message)

    async def complete(self, label: str, message: str) -> None:
        await self.emit(ProgressEventType.COMPLETE, label, message)


class ProgressTracker:
    """Records and broadcasts progress events per session.

    Each pipeline run is identified by a string ``session_id``.  Consumers
    register callbacks for a session; :meth:`publish` invokes them in
    registration order.  At most *session_limit* histories are kept; the
    session that published least recently is dropped first.
    """

    def __init__(
        self,
        history_limit: int = _HISTORY_LIMIT,
        session_limit: int = _SESSION_LIMIT,
    ) -> None:
        self._history_limit = history_limit
        self._session_limit = session_limit
        self._events: OrderedDict[str, deque[ProgressEvent]] = OrderedDict()
        self._listeners: dict[str, list[Callable]] = {}
        self._logger: structlog.BoundLogger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def reporter(self, session_id: str) -> ProgressReporter:
        """Return a reporter whose events are published under *session_id*."""

        async def _sink(event: ProgressEvent) -> None:
            await self.publish(session_id, event)

        return ProgressReporter(sink=_sink)

    async def publish(self, session_id: str, event: ProgressEvent) -> None:
        """Record *event* and notify all listeners of *session_id*."""
        history = self._events.get(session_id)
        if history is None:
            history = self._events[session_id] = deque(maxlen=self._history_limit)
            while len(self._events) > self._session_limit:
                evicted, _ = self._events.popitem(last=False)
                self._logger.debug("progress_session_evicted", session_id=evicted)
        else:
            self._events.move_to_end(session_id)
        history.append(event)
        await self._notify_listeners(session_id, event)

    def register_listener(self, session_id: str, callback: Callable) -> None:
        """Register a sync or async callable accepting ``(session_id, event)``."""
        listeners = self._listeners.setdefault(session_id, [])
        if callback not in listeners:
            listeners.append(callback)
            self._logger.debug(
                "listener_registered",
                session_id=session_id,
                total_listeners=len(listeners),
            )

    def unregister_listener(self, session_id: str, callback: Callable) -> None:
        listeners = self._listeners.get(session_id, [])
        if callback in listeners:
            listeners.remove(callback)
        if not listeners:
            self._listeners.pop(session_id, None)

    def get_events(self, session_id: str) -> list[ProgressEvent]:
        """Return the recorded events for a session, oldest first."""
        return list(self._events.get(session_id, ()))

    def clear(self, session_id: str) -> None:
        self._events.pop(session_id, None)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _notify_listeners(self, session_id: str, event: ProgressEvent) -> None:
        # Copy: a listener may unregister itself while being notified.
        for callback in list(self._listeners.get(session_id, [])):
            try:
                result = callback(session_id, event)
                if asyncio.iscoroutine(result):
                    await result
            except Exception as exc:
                self._logger.warning(
                    "listener_callback_error",
                    session_id=session_id,
                    error=str(exc),
                    callback=getattr(callback, "__name__", repr(callback)),
                )
