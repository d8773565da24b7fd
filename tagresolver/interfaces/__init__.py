"""Public interface definitions for every external collaborator.

The resolver reaches catalogs, the library and the audio analyser only
through the abstract base classes defined here.  Concrete adapters live in
``tagresolver/providers/`` and are wired together in ``tagresolver/main.py``.

    Interface            ->  Concrete implementations
    ----------------------------------------------------------------
    ITrackProvider       ->  BeatportProvider, TraxsourceProvider,
                             BandcampProvider, MusicBrainzProvider
    DetailFetcher        ->  TraxsourceProvider, BandcampProvider
    ILibraryStore        ->  MemoryLibraryStore, SQLiteLibraryStore
    IAnalysisScheduler   ->  QueueAnalysisScheduler
"""

from tagresolver.interfaces.analysis_scheduler import IAnalysisScheduler
from tagresolver.interfaces.library_store import ILibraryStore
from tagresolver.interfaces.track_provider import DetailFetcher, ITrackProvider

__all__ = [
    "DetailFetcher",
    "IAnalysisScheduler",
    "ILibraryStore",
    "ITrackProvider",
]
