"""Batch progress tracking with callback-based listener notification.

Stores the latest :class:`ProgressEvent` of every run and broadcasts each
new one to the listeners registered for that run.  Listeners are keyed by
run ID so concurrent runs never see each other's events.

    Orchestrator --publish()--> ProgressTracker --callback()--> WebSocket handler
                                                --callback()--> CLI progress line

Rules:
  - Events are frozen snapshots; listeners cannot mutate batch state.
  - Within one run and phase, ``processed`` never goes down.  An update
    that would move it backwards is dropped with a warning.
  - ``start`` begins a new batch on a run ID: the stored progress is
    dropped so the batch counts up from zero again, and listeners stay
    registered.
  - Listener errors are caught and logged, so one broken listener can't
    block the run or starve the other listeners.
  - Both sync and async callbacks are supported.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

import structlog

from tagresolver.models.batch import ProgressEvent
from tagresolver.utils.logging import get_logger

ProgressListener = Callable[[ProgressEvent], Any]


class ProgressTracker:
    """Tracks and broadcasts batch progress via callbacks."""

    def __init__(self) -> None:
        self._events: dict[str, ProgressEvent] = {}
        self._listeners: dict[str, list[ProgressListener]] = {}
        self._logger: structlog.BoundLogger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def publish(self, event: ProgressEvent) -> bool:
        """Record *event* and notify the run's listeners.

        Returns
        -------
        bool
            ``False`` when the event was rejected because it would move
            progress backwards.
        """
        previous = self._events.get(event.run_id)
        if (
            previous is not None
            and previous.phase == event.phase
            and event.processed < previous.processed
        ):
            self._logger.warning(
                "progress_regression_rejected",
                run_id=event.run_id,
                previous=previous.processed,
                attempted=event.processed,
            )
            return False

        self._events[event.run_id] = event
        self._logger.debug(
            "progress_update",
            run_id=event.run_id,
            phase=event.phase.value,
            processed=event.processed,
            total=event.total,
            current_title=event.current_title,
        )
        await self._notify_listeners(event)
        return True

    def register_listener(self, run_id: str, callback: ProgressListener) -> None:
        """Register a callback receiving every :class:`ProgressEvent` of *run_id*."""
        listeners = self._listeners.setdefault(run_id, [])
        if callback not in listeners:
            listeners.append(callback)
            self._logger.debug(
                "listener_registered", run_id=run_id, total_listeners=len(listeners)
            )

    def unregister_listener(self, run_id: str, callback: ProgressListener) -> None:
        listeners = self._listeners.get(run_id, [])
        if callback in listeners:
            listeners.remove(callback)
            self._logger.debug(
                "listener_unregistered", run_id=run_id, remaining_listeners=len(listeners)
            )

    def get_event(self, run_id: str) -> ProgressEvent | None:
        return self._events.get(run_id)

    def get_status(self, run_id: str) -> dict[str, Any]:
        """Return the latest progress of *run_id* as a plain dict.

        Zeroed defaults are returned for runs that have not reported yet.
        """
        event = self._events.get(run_id)
        if event is None:
            return {
                "run_id": run_id,
                "phase": None,
                "processed": 0,
                "total": 0,
                "current_title": None,
                "done": False,
            }
        return event.model_dump(mode="json")

    def start(self, run_id: str) -> None:
        """Reset the stored progress of *run_id* before a new batch on it.

        Listeners are kept, so a client following a reused run ID (such as
        the apply ID of a candidate run) sees every batch published on it.
        """
        if self._events.pop(run_id, None) is not None:
            self._logger.debug("progress_reset", run_id=run_id)

    def clear(self, run_id: str) -> None:
        """Forget a finished run's state and listeners."""
        self._events.pop(run_id, None)
        self._listeners.pop(run_id, None)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _notify_listeners(self, event: ProgressEvent) -> None:
        # Copy so listeners may unregister themselves while being notified.
        for callback in list(self._listeners.get(event.run_id, [])):
            try:
                result = callback(event)
                if asyncio.iscoroutine(result):
                    await result
            except Exception as exc:
                self._logger.warning(
                    "listener_callback_error",
                    run_id=event.run_id,
                    error=str(exc),
                    callback=getattr(callback, "__name__", repr(callback)),
                )
