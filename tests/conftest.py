"""Shared pytest fixtures for the tagresolver test suite."""

from __future__ import annotations

from pathlib import Path

import pytest

from tagresolver.interfaces.analysis_scheduler import IAnalysisScheduler
from tagresolver.interfaces.track_provider import ITrackProvider
from tagresolver.models.candidate import RawCandidate, ScoredCandidate
from tagresolver.models.config import ProviderConfig, TaggerConfig
from tagresolver.models.track import LocalTrack
from tagresolver.providers.catalog.registry import RegisteredProvider
from tagresolver.providers.library.memory_store import MemoryLibraryStore

# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeProvider(ITrackProvider):
    """Single-phase catalog returning canned results.

    ``results`` maps a lowercased title to the candidates returned for it;
    ``error`` makes every search raise instead.
    """

    def __init__(
        self,
        name: str,
        results: dict[str, list[RawCandidate]] | None = None,
        error: Exception | None = None,
        available: bool = True,
    ) -> None:
        self._name = name
        self._results = results or {}
        self._error = error
        self._available = available
        self.calls: list[tuple[str, str | None, int]] = []

    async def search(
        self, title: str, artist: str | None, max_results: int
    ) -> list[RawCandidate]:
        self.calls.append((title, artist, max_results))
        if self._error is not None:
            raise self._error
        return list(self._results.get(title.lower(), []))

    def get_provider_name(self) -> str:
        return self._name

    def is_available(self) -> bool:
        return self._available


class FakeDetailProvider(FakeProvider):
    """Two-phase catalog: ``fetch_details`` serves from ``details``."""

    def __init__(
        self,
        name: str,
        results: dict[str, list[RawCandidate]] | None = None,
        details: dict[str, RawCandidate | None] | None = None,
        detail_error: Exception | None = None,
    ) -> None:
        super().__init__(name, results)
        self._details = details or {}
        self._detail_error = detail_error
        self.detail_calls: list[str] = []

    async def fetch_details(self, candidate_id: str) -> RawCandidate | None:
        self.detail_calls.append(candidate_id)
        if self._detail_error is not None:
            raise self._detail_error
        return self._details.get(candidate_id)


class RecordingScheduler(IAnalysisScheduler):
    """Analysis scheduler that only records what it was asked to do."""

    def __init__(self, error: Exception | None = None) -> None:
        self.calls: list[list[str]] = []
        self._error = error

    def schedule_analysis(self, file_paths: list[str]) -> None:
        self.calls.append(list(file_paths))
        if self._error is not None:
            raise self._error


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def make_raw(
    candidate_id: str = "1",
    title: str | None = "Strings of Life",
    artists: tuple[str, ...] = ("Rhythim Is Rhythim",),
    **fields,
) -> RawCandidate:
    return RawCandidate(id=candidate_id, title=title, artists=artists, **fields)


def make_scored(
    candidate_id: str = "1",
    provider: str = "beatport",
    confidence: float = 0.9,
    priority: int = 0,
    **fields,
) -> ScoredCandidate:
    return ScoredCandidate(
        candidate=make_raw(candidate_id, **fields),
        provider=provider,
        priority=priority,
        confidence=confidence,
    )


def register(provider: ITrackProvider, priority: int = 0, max_results: int = 10) -> RegisteredProvider:
    name = provider.get_provider_name()
    return RegisteredProvider(
        config=ProviderConfig(
            name=name, display_name=name.title(), priority=priority, max_results=max_results
        ),
        provider=provider,
    )


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def sample_tracks() -> list[LocalTrack]:
    return [
        LocalTrack(
            id="t1",
            title="Strings of Life",
            artist="Rhythim Is Rhythim",
            duration=452.0,
            path="/music/strings.mp3",
        ),
        LocalTrack(
            id="t2",
            title="Unreleased Dubplate",
            artist="Nobody Known",
            duration=300.0,
            path="/music/dubplate.mp3",
        ),
        LocalTrack(
            id="t3",
            title="Can You Feel It",
            artist="Mr. Fingers",
            duration=391.0,
            path="/music/feel.mp3",
        ),
    ]


@pytest.fixture
def memory_store(sample_tracks: list[LocalTrack]) -> MemoryLibraryStore:
    return MemoryLibraryStore(sample_tracks)


@pytest.fixture
def scheduler() -> RecordingScheduler:
    return RecordingScheduler()


@pytest.fixture
def tagger_config() -> TaggerConfig:
    return TaggerConfig(
        providers=(
            ProviderConfig(name="beatport", display_name="Beatport", priority=0),
            ProviderConfig(name="traxsource", display_name="Traxsource", priority=1),
            ProviderConfig(name="bandcamp", display_name="Bandcamp", priority=2, max_results=5),
        )
    )
