"""FastAPI route definitions for the tagresolver API.

All routes live under ``/api/v1``.  Service dependencies are resolved from
``app.state`` (populated at startup in ``main.py``) via FastAPI's
``Depends`` with the ``Annotated`` pattern.

# /api/v1/health                 GET     Health check + provider availability
# /api/v1/providers              GET     Provider config, matching values, warnings
# /api/v1/providers/{name}       PUT     Enable/disable or re-rank a provider
# /api/v1/candidates             POST    Start a find-candidates run
# /api/v1/candidates/{run_id}    GET     Run status, progress and results
# /api/v1/candidates/{run_id}    DELETE  Cancel a running run
# /api/v1/selections             POST    Apply user-confirmed selections
"""

from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass
from typing import Annotated

import structlog
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request

from tagresolver.api.schemas import (
    ApplySelectionsRequest,
    ApplySelectionsResponse,
    ErrorResponse,
    FindCandidatesRequest,
    FindCandidatesResponse,
    HealthResponse,
    ProviderInfo,
    ProviderUpdateRequest,
    ProvidersResponse,
    RunStatusResponse,
)
from tagresolver.interfaces.library_store import ILibraryStore
from tagresolver.interfaces.track_provider import ITrackProvider
from tagresolver.models.batch import BatchOptions, BatchOutcome
from tagresolver.models.config import TaggerConfig
from tagresolver.models.track import LocalTrack
from tagresolver.pipeline.batch_orchestrator import CandidateBatchOrchestrator
from tagresolver.pipeline.progress_tracker import ProgressTracker
from tagresolver.pipeline.selection import resolve_choices
from tagresolver.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

router = APIRouter(prefix="/api/v1")

_VERSION = "0.1.0"


@dataclass
class RunRecord:
    """Server-side state of one find-candidates run."""

    run_id: str
    options: BatchOptions
    status: str = "running"
    outcome: BatchOutcome | None = None
    error: str | None = None


# ---------------------------------------------------------------------------
# Dependency injection helpers -- resolve singletons from app.state
# ---------------------------------------------------------------------------


def _get_orchestrator(request: Request) -> CandidateBatchOrchestrator:
    return request.app.state.orchestrator


def _get_library(request: Request) -> ILibraryStore:
    return request.app.state.library_store


def _get_progress_tracker(request: Request) -> ProgressTracker:
    return request.app.state.progress_tracker


def _get_runs(request: Request) -> dict[str, RunRecord]:
    return request.app.state.runs


def _get_tagger_config(request: Request) -> TaggerConfig:
    return request.app.state.config_source()


def _get_catalog_providers(request: Request) -> dict[str, ITrackProvider]:
    return request.app.state.catalog_providers


OrchestratorDep = Annotated[CandidateBatchOrchestrator, Depends(_get_orchestrator)]
LibraryDep = Annotated[ILibraryStore, Depends(_get_library)]
TrackerDep = Annotated[ProgressTracker, Depends(_get_progress_tracker)]
RunsDep = Annotated[dict[str, RunRecord], Depends(_get_runs)]
ConfigDep = Annotated[TaggerConfig, Depends(_get_tagger_config)]
ProvidersDep = Annotated[dict[str, ITrackProvider], Depends(_get_catalog_providers)]


async def _run_find_candidates(
    orchestrator: CandidateBatchOrchestrator,
    tracks: list[LocalTrack],
    record: RunRecord,
) -> None:
    """Execute a find-candidates run after the HTTP response was sent."""
    try:
        outcome = await orchestrator.find_candidates(tracks, record.options)
    except Exception as exc:
        record.status = "failed"
        record.error = str(exc)
        _logger.error("find_candidates_run_failed", run_id=record.run_id, error=str(exc))
        return
    record.outcome = outcome
    record.status = "cancelled" if outcome.summary.cancelled else "completed"


# ---------------------------------------------------------------------------
# System endpoints
# ---------------------------------------------------------------------------


@router.get("/health", response_model=HealthResponse, summary="Application health check")
async def health_check(providers: ProvidersDep, config: ConfigDep) -> HealthResponse:
    """Return application health, version, and provider availability."""
    availability = {name: provider.is_available() for name, provider in providers.items()}
    enabled_ok = any(
        availability.get(p.name, False) for p in config.enabled_providers()
    )
    return HealthResponse(
        status="healthy" if enabled_ok else "degraded",
        version=_VERSION,
        providers=availability,
    )


@router.get("/providers", response_model=ProvidersResponse, summary="List configured providers")
async def list_providers(
    request: Request, providers: ProvidersDep, config: ConfigDep
) -> ProvidersResponse:
    """List configured providers, matching values, and configuration warnings."""
    items = [
        ProviderInfo(
            name=p.name,
            display_name=p.display_name,
            enabled=p.enabled,
            max_results=p.max_results,
            priority=p.priority,
            available=p.name in providers and providers[p.name].is_available(),
        )
        for p in sorted(config.providers, key=lambda p: (p.priority, p.name))
    ]
    warnings = [*getattr(request.app.state, "provider_warnings", []), *config.warnings()]
    return ProvidersResponse(
        providers=items,
        warnings=warnings,
        auto_apply_threshold=config.auto_apply_threshold,
        duration_tolerance=config.duration_tolerance,
        tie_break_epsilon=config.tie_break_epsilon,
    )


@router.put(
    "/providers/{name}",
    response_model=ProvidersResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Update one provider",
)
async def update_provider(
    name: str,
    body: ProviderUpdateRequest,
    request: Request,
    providers: ProvidersDep,
    config: ConfigDep,
) -> ProvidersResponse:
    """Change a provider's enabled flag, result limit, or priority rank.

    Runs already in flight keep the configuration they started with.
    """
    if config.get_provider(name) is None:
        raise HTTPException(status_code=404, detail=f"Unknown provider: {name}")
    changes = body.model_dump(exclude_none=True)
    new_providers = tuple(
        p.model_copy(update=changes) if p.name == name else p for p in config.providers
    )
    request.app.state.set_config(config.model_copy(update={"providers": new_providers}))
    _logger.info("provider_config_updated", provider=name, **changes)
    return await list_providers(request, providers, request.app.state.config_source())


# ---------------------------------------------------------------------------
# Candidate runs
# ---------------------------------------------------------------------------


@router.post(
    "/candidates",
    response_model=FindCandidatesResponse,
    status_code=202,
    responses={404: {"model": ErrorResponse}},
    summary="Start a find-candidates run",
)
async def start_find_candidates(
    body: FindCandidatesRequest,
    background_tasks: BackgroundTasks,
    orchestrator: OrchestratorDep,
    library: LibraryDep,
    runs: RunsDep,
) -> FindCandidatesResponse:
    """Look up the requested tracks and resolve them in the background."""
    tracks = await library.list_tracks(body.track_ids)
    if body.track_ids is not None:
        missing = sorted(set(body.track_ids) - {t.id for t in tracks})
        if missing:
            raise HTTPException(status_code=404, detail=f"Unknown track ids: {', '.join(missing)}")

    run_id = uuid.uuid4().hex
    record = RunRecord(
        run_id=run_id,
        options=BatchOptions(
            run_id=run_id, auto_apply=body.auto_apply, cancel_event=asyncio.Event()
        ),
    )
    runs[run_id] = record
    background_tasks.add_task(_run_find_candidates, orchestrator, tracks, record)
    _logger.info("find_candidates_queued", run_id=run_id, tracks=len(tracks))
    return FindCandidatesResponse(run_id=run_id, status=record.status, total=len(tracks))


@router.get(
    "/candidates/{run_id}",
    response_model=RunStatusResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Get run status and results",
)
async def get_run(run_id: str, runs: RunsDep, tracker: TrackerDep) -> RunStatusResponse:
    record = runs.get(run_id)
    if record is None:
        raise HTTPException(status_code=404, detail=f"Unknown run: {run_id}")
    return RunStatusResponse(
        run_id=run_id,
        status=record.status,
        progress=tracker.get_status(run_id),
        outcome=record.outcome,
        error=record.error,
    )


@router.delete(
    "/candidates/{run_id}",
    response_model=RunStatusResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Cancel a run",
)
async def cancel_run(run_id: str, runs: RunsDep, tracker: TrackerDep) -> RunStatusResponse:
    """Ask a running run to stop after the track in flight.

    Cancelling a finished run is a no-op.
    """
    record = runs.get(run_id)
    if record is None:
        raise HTTPException(status_code=404, detail=f"Unknown run: {run_id}")
    if record.status == "running" and record.options.cancel_event is not None:
        record.options.cancel_event.set()
        _logger.info("find_candidates_cancel_requested", run_id=run_id)
    return RunStatusResponse(
        run_id=run_id,
        status=record.status,
        progress=tracker.get_status(run_id),
        outcome=record.outcome,
        error=record.error,
    )


# ---------------------------------------------------------------------------
# Selections
# ---------------------------------------------------------------------------


@router.post(
    "/selections",
    response_model=ApplySelectionsResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    summary="Apply user-confirmed selections",
)
async def apply_selections(
    body: ApplySelectionsRequest,
    orchestrator: OrchestratorDep,
    runs: RunsDep,
) -> ApplySelectionsResponse:
    """Resolve each ``selection_id`` against the run's results and apply them.

    Progress is published under ``{run_id}-apply``; every call restarts
    that progress from zero, so WebSocket clients can follow repeated
    applies on the same ID.
    """
    record = runs.get(body.run_id)
    if record is None:
        raise HTTPException(status_code=404, detail=f"Unknown run: {body.run_id}")
    if record.outcome is None:
        raise HTTPException(status_code=409, detail=f"Run {body.run_id} has no results yet")

    selections, errors = resolve_choices(record.outcome.results, body.selections)

    apply_run_id = f"{body.run_id}-apply"
    outcome = await orchestrator.apply_selections(
        selections, BatchOptions(run_id=apply_run_id)
    )
    return ApplySelectionsResponse(
        run_id=apply_run_id,
        updated=list(outcome.updated),
        errors=[*errors, *outcome.errors],
        skipped=list(outcome.skipped),
        analysis_scheduled=list(outcome.analysis_scheduled),
    )
