"""WebSocket endpoint for real-time ingestion and query progress.

Connects a client to one session via the ``ProgressTracker`` listener
mechanism.  Instead of polling ``/api/v1/progress/{session_id}``, the
client gets every event pushed as it happens:

    Client                               Backend (this file)
    ──────                               ──────────────────
    ws = new WebSocket(url)   ──────→   websocket.accept()
                                         register_listener(callback)
                              ←──────   replay recorded events
                                         ...ingestion runs...
                              ←──────   push event (JSON)
    ws.close()                ──────→   WebSocketDisconnect
                                         unregister_listener(callback)

JSON message format:
    {"session_id": "abc", "type": "success", "label": "embedding",
     "message": "Generated embedding 3/10", "timestamp": "..."}
"""

from __future__ import annotations

import contextlib

import structlog
from fastapi import WebSocket, WebSocketDisconnect

from src.models.progress import ProgressEvent
from src.pipeline.progress_tracker import ProgressTracker
from src.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)


def _event_message(session_id: str, event: ProgressEvent) -> dict:
    return {"session_id": session_id, **event.model_dump(mode="json")}


async def websocket_progress(websocket: WebSocket, session_id: str) -> None:
    """Stream progress events for *session_id* to the client.

    Lifecycle:
        1. Accept the WebSocket connection.
        2. Register a listener callback with the :class:`ProgressTracker`.
        3. Replay the events recorded so far.
        4. Push every new event as a JSON message.
        5. On disconnect, unregister the listener.
    """
    progress_tracker: ProgressTracker = websocket.app.state.progress_tracker

    await websocket.accept()
    _logger.info("websocket_connected", session_id=session_id)

    async def _on_progress(sid: str, event: ProgressEvent) -> None:
        # The socket may close between the event and the send; cleanup
        # happens in the finally block below.
        with contextlib.suppress(Exception):
            await websocket.send_json(_event_message(sid, event))

    progress_tracker.register_listener(session_id, _on_progress)

    try:
        for event in progress_tracker.get_events(session_id):
            await websocket.send_json(_event_message(session_id, event))

        # Blocks until the client disconnects.
        while True:
            await websocket.receive_text()

    except WebSocketDisconnect:
        _logger.info("websocket_disconnected", session_id=session_id)

    finally:
        progress_tracker.unregister_listener(session_id, _on_progress)
        _logger.debug("websocket_listener_cleaned_up", session_id=session_id)
