"""Batch orchestrator: resolve many tracks, report progress, isolate failures.

Two batch-shaped operations share one progress contract:

* :meth:`CandidateBatchOrchestrator.find_candidates` -- for every track,
  aggregate and rank candidates, run the decision policy, apply
  auto-apply verdicts inline, and collect needs-selection results for the
  caller.
* :meth:`CandidateBatchOrchestrator.apply_selections` -- apply the
  selections a user confirmed.

Tracks are processed one after another.  ``BatchProgress`` is written only
here and published as frozen snapshots before and after each item, so
``processed`` only ever increases.  A failing track is recorded as
NO_CANDIDATES with its error and the batch carries on.

The configuration is read once when a run starts; edits made while a run
is in flight only affect the next run.
"""

from __future__ import annotations

from collections.abc import Callable

import structlog

from tagresolver.models.batch import (
    ApplyError,
    ApplyOutcome,
    BatchOptions,
    BatchOutcome,
    BatchPhase,
    BatchProgress,
    BatchSummary,
    TrackSelection,
)
from tagresolver.models.candidate import CandidateResult, Verdict
from tagresolver.models.config import TaggerConfig
from tagresolver.models.track import LocalTrack
from tagresolver.pipeline.decision_policy import decide
from tagresolver.pipeline.progress_tracker import ProgressTracker
from tagresolver.services.apply_engine import ApplyEngine
from tagresolver.services.candidate_aggregator import CandidateAggregator
from tagresolver.utils.logging import get_logger

AggregatorFactory = Callable[[TaggerConfig], CandidateAggregator]


class CandidateBatchOrchestrator:
    """Drives candidate search and apply across many tracks.

    Parameters
    ----------
    aggregator_factory:
        Builds the aggregator for a run from that run's config snapshot.
    apply_engine:
        Writes selected candidates back to the library.
    progress_tracker:
        Receives a progress event before and after every item.
    config_source:
        Returns the current configuration; called once per run.
    """

    def __init__(
        self,
        aggregator_factory: AggregatorFactory,
        apply_engine: ApplyEngine,
        progress_tracker: ProgressTracker,
        config_source: Callable[[], TaggerConfig],
    ) -> None:
        self._aggregator_factory = aggregator_factory
        self._apply_engine = apply_engine
        self._tracker = progress_tracker
        self._config_source = config_source
        self._logger: structlog.BoundLogger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Find candidates
    # ------------------------------------------------------------------

    async def find_candidates(
        self,
        tracks: list[LocalTrack],
        options: BatchOptions | None = None,
    ) -> BatchOutcome:
        """Resolve candidates for every track.

        Never raises for a single track's failure.  With zero enabled
        providers every track comes back NO_CANDIDATES and the summary
        carries a warning.
        """
        options = options or BatchOptions()
        config = self._config_source()
        aggregator = self._aggregator_factory(config)

        warnings = config.warnings()
        if not aggregator.provider_names and config.enabled_providers():
            warnings.append("None of the enabled providers is available")

        with structlog.contextvars.bound_contextvars(run_id=options.run_id):
            for warning in warnings:
                self._logger.warning("tagger_config_warning", warning=warning)
            self._logger.info(
                "find_candidates_started",
                tracks=len(tracks),
                providers=aggregator.provider_names,
                threshold=config.auto_apply_threshold,
            )
            return await self._run_find(tracks, options, config, aggregator, warnings)

    async def _run_find(
        self,
        tracks: list[LocalTrack],
        options: BatchOptions,
        config: TaggerConfig,
        aggregator: CandidateAggregator,
        warnings: list[str],
    ) -> BatchOutcome:
        progress = BatchProgress(total=len(tracks))
        self._tracker.start(options.run_id)
        results: list[CandidateResult] = []
        pending: list[CandidateResult] = []
        updated: list[LocalTrack] = []
        errors: list[ApplyError] = []
        auto_applied = 0
        cancelled = False

        for track in tracks:
            if options.cancelled:
                cancelled = True
                break

            progress.current_title = track.title
            await self._publish(progress, options.run_id, BatchPhase.FIND)

            result = await self._resolve_track(track, aggregator, config.auto_apply_threshold)

            if options.cancelled:
                # The in-flight track finished its provider calls, but its
                # candidates are not surfaced as a decision.
                self._logger.info("track_result_discarded", track_id=track.id)
                cancelled = True
                break

            if result.verdict is Verdict.AUTO_APPLY and options.auto_apply:
                outcome = await self._apply_engine.apply(
                    [TrackSelection(track_id=track.id, candidate=result.best)]
                )
                updated.extend(outcome.updated)
                errors.extend(outcome.errors)
                auto_applied += len(outcome.updated)
            elif result.verdict is not Verdict.NO_CANDIDATES:
                pending.append(result)

            results.append(result)
            progress.processed += 1
            await self._publish(progress, options.run_id, BatchPhase.FIND)

        progress.current_title = None
        await self._publish(progress, options.run_id, BatchPhase.FIND, done=True)

        summary = BatchSummary(
            total=len(tracks),
            processed=progress.processed,
            auto_applied=auto_applied,
            pending=len(pending),
            no_candidates=sum(1 for r in results if r.verdict is Verdict.NO_CANDIDATES),
            updated=len(updated),
            errors=len(errors) + sum(1 for r in results if r.error),
            cancelled=cancelled,
            warnings=tuple(warnings),
        )
        self._logger.info("find_candidates_finished", **summary.model_dump(exclude={"warnings"}))
        return BatchOutcome(
            run_id=options.run_id,
            results=tuple(results),
            pending=tuple(pending),
            updated=tuple(updated),
            errors=tuple(errors),
            summary=summary,
        )

    async def _resolve_track(
        self,
        track: LocalTrack,
        aggregator: CandidateAggregator,
        threshold: float,
    ) -> CandidateResult:
        base = {
            "track_id": track.id,
            "local_title": track.title,
            "local_artist": track.artist,
            "local_duration": track.duration,
        }
        try:
            candidates = await aggregator.aggregate(track)
        except Exception as exc:
            self._logger.warning(
                "track_resolve_failed",
                track_id=track.id,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return CandidateResult(**base, verdict=Verdict.NO_CANDIDATES, error=str(exc))

        verdict = decide(candidates, threshold)
        self._logger.debug(
            "track_resolved",
            track_id=track.id,
            verdict=verdict.value,
            candidates=len(candidates),
        )
        return CandidateResult(**base, candidates=tuple(candidates), verdict=verdict)

    # ------------------------------------------------------------------
    # Apply selections
    # ------------------------------------------------------------------

    async def apply_selections(
        self,
        selections: list[TrackSelection],
        options: BatchOptions | None = None,
    ) -> ApplyOutcome:
        """Apply user-confirmed selections with the same progress contract."""
        options = options or BatchOptions()
        progress = BatchProgress(total=len(selections))
        self._tracker.start(options.run_id)

        async def _on_progress(processed: int, title: str | None) -> None:
            progress.processed = max(progress.processed, processed)
            progress.current_title = title
            await self._publish(progress, options.run_id, BatchPhase.APPLY)

        with structlog.contextvars.bound_contextvars(run_id=options.run_id):
            self._logger.info("apply_selections_started", selections=len(selections))
            outcome = await self._apply_engine.apply(selections, on_progress=_on_progress)
            progress.current_title = None
            await self._publish(progress, options.run_id, BatchPhase.APPLY, done=True)
            self._logger.info(
                "apply_selections_finished",
                updated=len(outcome.updated),
                errors=len(outcome.errors),
                skipped=len(outcome.skipped),
            )
        return outcome

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _publish(
        self,
        progress: BatchProgress,
        run_id: str,
        phase: BatchPhase,
        done: bool = False,
    ) -> None:
        await self._tracker.publish(progress.snapshot(run_id, phase, done=done))
