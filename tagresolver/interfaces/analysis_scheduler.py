"""Abstract base class for the audio-analysis collaborator.

The apply engine calls :meth:`IAnalysisScheduler.schedule_analysis` when a
track still lacks bpm or key after tagging.  The call is fire-and-forget:
implementations must return immediately and do the actual analysis
elsewhere.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class IAnalysisScheduler(ABC):
    """Contract for scheduling bpm/key analysis of audio files."""

    @abstractmethod
    def schedule_analysis(self, file_paths: list[str]) -> None:
        """Queue the given audio files for analysis without waiting on it."""
