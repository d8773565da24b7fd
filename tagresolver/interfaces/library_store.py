"""Abstract base class for the library persistence collaborator.

The resolver never reads or writes audio files.  It only reads
:class:`~tagresolver.models.track.LocalTrack` records from, and writes them
back to, a library store.  Each write targets one track by identifier, so
concurrent apply calls on disjoint track sets are safe.

The store also keeps the queue of audio files waiting for bpm/key
analysis, so paths scheduled by a short-lived process (the CLI) outlive it
until an analyser picks them up.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from tagresolver.models.track import LocalTrack


# Concrete implementations: MemoryLibraryStore and SQLiteLibraryStore
# (tagresolver/providers/library/).
class ILibraryStore(ABC):
    """Contract for library persistence services.

    All operations are async to support file- or network-backed stores.
    """

    @abstractmethod
    async def find_track_by_id(self, track_id: str) -> LocalTrack | None:
        """Return the track with *track_id*, or ``None`` if unknown."""

    @abstractmethod
    async def update_track(self, track: LocalTrack) -> None:
        """Persist *track*, replacing the stored record with the same id.

        Raises
        ------
        tagresolver.utils.errors.PersistenceError
            If the write fails.
        """

    @abstractmethod
    async def update_tracks(self, tracks: list[LocalTrack]) -> None:
        """Persist several tracks at once."""

    @abstractmethod
    async def list_tracks(self, track_ids: list[str] | None = None) -> list[LocalTrack]:
        """Return the tracks with the given ids, or all tracks when ``None``.

        Unknown ids are silently left out.  Order follows *track_ids* when
        given, else the store's natural order.
        """

    # -- Analysis queue ----------------------------------------------------

    @abstractmethod
    async def enqueue_analysis(self, file_paths: list[str]) -> int:
        """Record audio files waiting for bpm/key analysis.

        Paths already waiting are ignored.  Returns how many were added.
        """

    @abstractmethod
    async def pending_analysis(self) -> list[str]:
        """Return the paths waiting for analysis, oldest first."""

    @abstractmethod
    async def clear_analysis(self, file_paths: list[str]) -> None:
        """Remove *file_paths* from the analysis queue."""
