"""Batch run models: progress, selections, and outcomes.

``BatchProgress`` is the only mutable model in tagresolver.  It has a
single writer (the batch orchestrator); everyone else sees frozen
:class:`ProgressEvent` snapshots taken from it.
"""

from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel, ConfigDict

from tagresolver.models.candidate import CandidateResult, ScoredCandidate
from tagresolver.models.track import LocalTrack


class BatchPhase(str, Enum):  # noqa: UP042 -- StrEnum requires Python 3.11+
    """Which batch-shaped operation a progress event belongs to."""

    FIND = "find"
    APPLY = "apply"


class ProgressEvent(BaseModel):
    """Immutable snapshot of a run's progress, as seen by listeners."""

    model_config = ConfigDict(frozen=True)

    run_id: str
    phase: BatchPhase
    processed: int
    total: int
    current_title: str | None = None
    done: bool = False


@dataclass
class BatchProgress:
    """Mutable progress counter for one run.

    Written only by the orchestrator.  ``processed`` never decreases.
    """

    total: int
    processed: int = 0
    current_title: str | None = None

    def snapshot(self, run_id: str, phase: BatchPhase, done: bool = False) -> ProgressEvent:
        return ProgressEvent(
            run_id=run_id,
            phase=phase,
            processed=self.processed,
            total=self.total,
            current_title=self.current_title,
            done=done,
        )


@dataclass
class BatchOptions:
    """Per-run options for the orchestrator.

    ``cancel_event`` lets a caller abandon a run: the track in flight is
    allowed to finish its provider calls, its result is discarded, and no
    further tracks are started.
    """

    run_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    auto_apply: bool = True
    cancel_event: asyncio.Event | None = None

    @property
    def cancelled(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()


class TrackSelection(BaseModel):
    """A candidate chosen (by a user or by auto-apply) for one track.

    ``candidate=None`` means the user marked the track as "not available";
    the apply engine skips it.  ``clear_fields`` lists track fields the user
    explicitly accepted clearing even though the candidate leaves them absent.
    """

    model_config = ConfigDict(frozen=True)

    track_id: str
    candidate: ScoredCandidate | None = None
    clear_fields: tuple[str, ...] = ()


class ApplyError(BaseModel):
    """One selection that could not be applied."""

    model_config = ConfigDict(frozen=True)

    track_id: str
    error: str


class ApplyOutcome(BaseModel):
    """Result of applying a set of selections."""

    model_config = ConfigDict(frozen=True)

    updated: tuple[LocalTrack, ...] = ()
    errors: tuple[ApplyError, ...] = ()
    skipped: tuple[str, ...] = ()
    # File paths handed to the audio-analysis scheduler.
    analysis_scheduled: tuple[str, ...] = ()


class BatchSummary(BaseModel):
    """Counts shown to the user once a run has finished."""

    model_config = ConfigDict(frozen=True)

    total: int = 0
    processed: int = 0
    auto_applied: int = 0
    pending: int = 0
    no_candidates: int = 0
    updated: int = 0
    errors: int = 0
    cancelled: bool = False
    warnings: tuple[str, ...] = ()


class BatchOutcome(BaseModel):
    """Everything a find-candidates run produces."""

    model_config = ConfigDict(frozen=True)

    run_id: str
    results: tuple[CandidateResult, ...] = ()
    # Results whose verdict needs a user decision.
    pending: tuple[CandidateResult, ...] = ()
    updated: tuple[LocalTrack, ...] = ()
    errors: tuple[ApplyError, ...] = ()
    summary: BatchSummary = BatchSummary()


class SelectionChoice(BaseModel):
    """A user's answer for one track, as received from the API or the CLI.

    ``selection_id`` is the ``"provider:id"`` key of one of the track's
    candidates, or ``None`` for "not available".
    """

    model_config = ConfigDict(frozen=True)

    track_id: str
    selection_id: str | None = None
    clear_fields: tuple[str, ...] = ()
