"""tagresolver domain models -- re-exports all public model classes.

The models are organized across four submodules by concern:
    - track.py      -- LocalTrack, the library record being resolved
    - candidate.py  -- RawCandidate, ScoredCandidate, CandidateResult, Verdict
    - config.py     -- ProviderConfig and the per-run TaggerConfig snapshot
    - batch.py      -- Progress, selections, and batch outcomes

If you add a new model class, remember to add it to ``__all__`` too.
"""

from __future__ import annotations

from tagresolver.models.batch import (
    ApplyError,
    ApplyOutcome,
    BatchOptions,
    BatchOutcome,
    BatchPhase,
    BatchProgress,
    BatchSummary,
    ProgressEvent,
    SelectionChoice,
    TrackSelection,
)
from tagresolver.models.candidate import (
    CandidateResult,
    RawCandidate,
    ScoredCandidate,
    Verdict,
)
from tagresolver.models.config import ProviderConfig, TaggerConfig
from tagresolver.models.track import WRITABLE_FIELDS, LocalTrack

__all__ = [
    "ApplyError",
    "ApplyOutcome",
    "BatchOptions",
    "BatchOutcome",
    "BatchPhase",
    "BatchProgress",
    "BatchSummary",
    "CandidateResult",
    "LocalTrack",
    "ProgressEvent",
    "ProviderConfig",
    "RawCandidate",
    "ScoredCandidate",
    "SelectionChoice",
    "TaggerConfig",
    "TrackSelection",
    "Verdict",
    "WRITABLE_FIELDS",
]
