"""Queue-backed audio-analysis scheduler.

``schedule_analysis`` only enqueues file paths and returns immediately.
Paths already waiting in the queue are not enqueued twice.  The queue is
drained into a *sink*, normally
:meth:`~tagresolver.interfaces.library_store.ILibraryStore.enqueue_analysis`,
which records the paths durably for the analysis worker: the API runs
:meth:`QueueAnalysisScheduler.run` for its whole lifetime, while the CLI
calls :meth:`QueueAnalysisScheduler.flush` once before it exits.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

from tagresolver.interfaces.analysis_scheduler import IAnalysisScheduler
from tagresolver.utils.logging import get_logger

logger = get_logger(__name__)

AnalysisSink = Callable[[list[str]], Awaitable[Any]]


class QueueAnalysisScheduler(IAnalysisScheduler):
    """Fire-and-forget scheduler over an ``asyncio.Queue``."""

    def __init__(self, queue: asyncio.Queue[str] | None = None) -> None:
        self._queue: asyncio.Queue[str] = queue if queue is not None else asyncio.Queue()
        # Insertion-ordered set of paths still in the queue.
        self._waiting: dict[str, None] = {}

    @property
    def queue(self) -> asyncio.Queue[str]:
        return self._queue

    def schedule_analysis(self, file_paths: list[str]) -> None:
        added = 0
        for path in file_paths:
            if path in self._waiting:
                continue
            try:
                self._queue.put_nowait(path)
            except asyncio.QueueFull:
                logger.warning("analysis_queue_full", path=path, size=self._queue.qsize())
                break
            self._waiting[path] = None
            added += 1
        logger.info("analysis_scheduled", requested=len(file_paths), queued=added)

    async def next_path(self) -> str:
        """Wait for and return the next path to analyse."""
        path = await self._queue.get()
        self._waiting.pop(path, None)
        return path

    def pending(self) -> list[str]:
        """Paths waiting to be analysed, in queue order."""
        return list(self._waiting)

    # -- Draining ----------------------------------------------------------

    async def run(self, sink: AnalysisSink) -> None:
        """Hand queued paths to *sink* until cancelled.

        Each wake-up delivers the path that woke it together with every
        other path already waiting, so a burst from one apply batch reaches
        the sink as a single call.
        """
        while True:
            first = await self.next_path()
            await self._deliver(sink, [first, *self._take_ready()])

    async def flush(self, sink: AnalysisSink) -> int:
        """Deliver everything currently queued to *sink*; return the count."""
        paths = self._take_ready()
        if paths:
            await self._deliver(sink, paths)
        return len(paths)

    def _take_ready(self) -> list[str]:
        paths: list[str] = []
        while True:
            try:
                path = self._queue.get_nowait()
            except asyncio.QueueEmpty:
                return paths
            self._waiting.pop(path, None)
            paths.append(path)

    async def _deliver(self, sink: AnalysisSink, paths: list[str]) -> None:
        try:
            await sink(paths)
        except Exception as exc:
            logger.warning("analysis_delivery_failed", paths=len(paths), error=str(exc))
            return
        logger.info("analysis_delivered", paths=len(paths))
