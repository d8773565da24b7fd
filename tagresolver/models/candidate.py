"""Catalog candidate models.

A candidate travels through three shapes:

    RawCandidate     -- one catalog's offering, mapped to a common shape
    ScoredCandidate  -- RawCandidate + confidence, provider, priority
    CandidateResult  -- the ranked ScoredCandidates for one library track,
                        plus the verdict of the decision policy

Fields a catalog cannot supply stay ``None``.  They are never defaulted to
``0`` or ``""``, so the scorer and the apply engine can tell "unknown" from
"confirmed absent".
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict

_YEAR_RE = re.compile(r"\b(\d{4})\b")


class RawCandidate(BaseModel):
    """One catalog result mapped to the common candidate shape.

    For two-phase catalogs ``id`` is the resource locator (usually the
    track page URL) that ``fetch_details`` needs, not a final catalog ID.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    title: str | None = None
    artists: tuple[str, ...] = ()
    mix_name: str | None = None
    album: str | None = None
    label: str | None = None
    genre: str | None = None
    bpm: int | None = None
    key: str | None = None
    duration: float | None = None
    artwork_url: str | None = None
    release_date: str | None = None

    @property
    def artist(self) -> str | None:
        """All artists joined for display and write-back."""
        return ", ".join(self.artists) if self.artists else None

    @property
    def full_title(self) -> str | None:
        """Title with the mix name appended, e.g. ``"Track (Original Mix)"``."""
        if not self.title or not self.mix_name:
            return self.title
        if self.mix_name.lower() in self.title.lower():
            return self.title
        return f"{self.title} ({self.mix_name})"

    @property
    def year(self) -> int | None:
        """Release year parsed from ``release_date``."""
        if not self.release_date:
            return None
        match = _YEAR_RE.search(self.release_date)
        return int(match.group(1)) if match else None

    def supplied_fields(self) -> dict[str, Any]:
        """Return the library-track fields this candidate actually supplies.

        Keys are :class:`~tagresolver.models.track.LocalTrack` field names.
        Absent values are left out entirely.
        """
        fields: dict[str, Any] = {
            "title": self.full_title or None,
            "artist": self.artist,
            "album": self.album,
            "genre": self.genre,
            "year": self.year,
            "bpm": self.bpm,
            "key": self.key,
            "duration": self.duration,
            "artwork": self.artwork_url,
            "label": self.label,
        }
        return {name: value for name, value in fields.items() if value is not None}

    def merged_with(self, details: RawCandidate) -> RawCandidate:
        """Overlay the values of a detail fetch onto this search result.

        Values present in ``details`` win; values ``details`` leaves absent
        fall back to this candidate's.  The search-phase ``id`` is kept.
        """
        update: dict[str, Any] = {}
        for name in type(self).model_fields:
            if name == "id":
                continue
            value = getattr(details, name)
            if value is None or value == () or value == "":
                continue
            update[name] = value
        return self.model_copy(update=update)


class ScoredCandidate(BaseModel):
    """A RawCandidate scored against one library track.  Immutable."""

    model_config = ConfigDict(frozen=True)

    candidate: RawCandidate
    provider: str
    priority: int
    confidence: float
    matched_tokens: tuple[str, ...] = ()

    @property
    def selection_id(self) -> str:
        """Stable identifier used by callers to pick this candidate."""
        return f"{self.provider}:{self.candidate.id}"


class Verdict(str, Enum):  # noqa: UP042 -- StrEnum requires Python 3.11+
    """Outcome of the decision policy for one track."""

    AUTO_APPLY = "auto_apply"
    NEEDS_SELECTION = "needs_selection"
    NO_CANDIDATES = "no_candidates"


class CandidateResult(BaseModel):
    """Ranked candidates and verdict for one library track."""

    model_config = ConfigDict(frozen=True)

    track_id: str
    local_title: str | None = None
    local_artist: str | None = None
    local_duration: float | None = None
    candidates: tuple[ScoredCandidate, ...] = ()
    verdict: Verdict = Verdict.NO_CANDIDATES
    # Set when the track failed outside the provider fan-out.
    error: str | None = None

    @property
    def best(self) -> ScoredCandidate | None:
        return self.candidates[0] if self.candidates else None
