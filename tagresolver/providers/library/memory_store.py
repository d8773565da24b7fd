"""In-memory library store.

Holds tracks in a plain dict keyed by track id.  Callers that already have
their tracks in memory pass it to ``build_services`` as ``library_store``;
the test suite uses it throughout.
"""

from __future__ import annotations

import asyncio

from tagresolver.interfaces.library_store import ILibraryStore
from tagresolver.models.track import LocalTrack


class MemoryLibraryStore(ILibraryStore):
    """Dict-backed library store.

    Writes are serialised through an ``asyncio.Lock``; reads are not.
    """

    def __init__(self, tracks: list[LocalTrack] | None = None) -> None:
        self._tracks: dict[str, LocalTrack] = {t.id: t for t in tracks or []}
        self._lock = asyncio.Lock()
        # Insertion-ordered set of paths waiting for analysis.
        self._analysis: dict[str, None] = {}

    async def find_track_by_id(self, track_id: str) -> LocalTrack | None:
        return self._tracks.get(track_id)

    async def update_track(self, track: LocalTrack) -> None:
        async with self._lock:
            self._tracks[track.id] = track

    async def update_tracks(self, tracks: list[LocalTrack]) -> None:
        async with self._lock:
            for track in tracks:
                self._tracks[track.id] = track

    async def list_tracks(self, track_ids: list[str] | None = None) -> list[LocalTrack]:
        if track_ids is None:
            return list(self._tracks.values())
        return [self._tracks[tid] for tid in track_ids if tid in self._tracks]

    async def enqueue_analysis(self, file_paths: list[str]) -> int:
        added = 0
        for path in file_paths:
            if path not in self._analysis:
                self._analysis[path] = None
                added += 1
        return added

    async def pending_analysis(self) -> list[str]:
        return list(self._analysis)

    async def clear_analysis(self, file_paths: list[str]) -> None:
        for path in file_paths:
            self._analysis.pop(path, None)
