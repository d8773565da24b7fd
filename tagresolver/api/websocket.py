"""WebSocket endpoint for real-time batch progress updates.

Connects a client to one run via the ``ProgressTracker`` listener
mechanism.  Every :class:`ProgressEvent` of that run is pushed as JSON:

    {"run_id": "...", "phase": "find", "processed": 3, "total": 10,
     "current_title": "Track", "done": false}

The first message is the current snapshot, so a client connecting late is
immediately up to date.
"""

from __future__ import annotations

import contextlib

import structlog
from fastapi import WebSocket, WebSocketDisconnect

from tagresolver.models.batch import ProgressEvent
from tagresolver.pipeline.progress_tracker import ProgressTracker
from tagresolver.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)


async def websocket_progress(websocket: WebSocket, run_id: str) -> None:
    """Stream progress events of *run_id* to the client over WebSocket."""
    progress_tracker: ProgressTracker = websocket.app.state.progress_tracker

    await websocket.accept()
    _logger.info("websocket_connected", run_id=run_id)

    async def _on_progress(event: ProgressEvent) -> None:
        # The socket may have closed since the last message; cleanup
        # happens in the finally block below.
        with contextlib.suppress(Exception):
            await websocket.send_json(event.model_dump(mode="json"))

    progress_tracker.register_listener(run_id, _on_progress)

    try:
        await websocket.send_json(progress_tracker.get_status(run_id))
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        _logger.info("websocket_disconnected", run_id=run_id)
    finally:
        progress_tracker.unregister_listener(run_id, _on_progress)
        _logger.debug("websocket_listener_cleaned_up", run_id=run_id)
