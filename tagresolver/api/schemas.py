"""Pydantic request/response schemas for the tagresolver API.

Convention: request schemas end with "Request", response schemas end with
"Response".  Domain models (LocalTrack, CandidateResult, ...) are embedded
directly where the API returns them unchanged.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from tagresolver.models.batch import ApplyError, BatchOutcome, SelectionChoice
from tagresolver.models.track import LocalTrack


class HealthResponse(BaseModel):
    status: str
    version: str
    providers: dict[str, bool] = Field(default_factory=dict)


class ProviderInfo(BaseModel):
    """One configured catalog as shown to the settings screen."""

    name: str
    display_name: str
    enabled: bool
    max_results: int
    priority: int
    available: bool


class ProvidersResponse(BaseModel):
    providers: list[ProviderInfo] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    auto_apply_threshold: float
    duration_tolerance: float
    tie_break_epsilon: float


class ProviderUpdateRequest(BaseModel):
    """Partial update of one provider; omitted fields keep their value."""

    enabled: bool | None = None
    max_results: int | None = Field(default=None, ge=1)
    priority: int | None = None


class FindCandidatesRequest(BaseModel):
    """Start a find-candidates run.

    ``track_ids=None`` runs over the whole library.
    """

    track_ids: list[str] | None = None
    auto_apply: bool = True


class FindCandidatesResponse(BaseModel):
    run_id: str
    status: str
    total: int


class RunStatusResponse(BaseModel):
    run_id: str
    status: str = Field(description="running | completed | cancelled | failed")
    progress: dict[str, Any] = Field(default_factory=dict)
    outcome: BatchOutcome | None = None
    error: str | None = None


class ApplySelectionsRequest(BaseModel):
    run_id: str = Field(description="The find-candidates run the selections come from")
    selections: list[SelectionChoice] = Field(min_length=1)


class ApplySelectionsResponse(BaseModel):
    run_id: str
    updated: list[LocalTrack] = Field(default_factory=list)
    errors: list[ApplyError] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)
    analysis_scheduled: list[str] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    error: str | None = None
    detail: str
