"""Apply engine: write chosen candidates back onto library tracks.

Each selection is an independent write.  For every selection the engine

1. skips it when the candidate is ``None`` (user chose "not available"),
2. loads the track (missing track -> per-selection error),
3. completes the candidate with ``fetch_details`` when its provider has
   that capability; a failing or empty detail fetch falls back to the
   search data,
4. merges **only the fields the candidate supplies** (plus any field the
   caller explicitly agreed to clear) onto the track, keeping local values
   that :mod:`~tagresolver.services.merge_rules` marks as deliberate,
5. persists the track (write failure -> per-selection error).

Tracks still missing bpm or key afterwards are handed to the audio-analysis
scheduler, once per :meth:`ApplyEngine.apply` call.  The scheduler call
does not block and its failure never fails the apply.
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable
from typing import Any

import structlog

from tagresolver.interfaces.analysis_scheduler import IAnalysisScheduler
from tagresolver.interfaces.library_store import ILibraryStore
from tagresolver.interfaces.track_provider import DetailFetcher, ITrackProvider
from tagresolver.models.batch import ApplyError, ApplyOutcome, TrackSelection
from tagresolver.models.candidate import RawCandidate, ScoredCandidate
from tagresolver.models.track import WRITABLE_FIELDS, LocalTrack
from tagresolver.services.merge_rules import preserved_fields
from tagresolver.utils.errors import SelectionError, TaggerError, TrackNotFoundError
from tagresolver.utils.logging import get_logger

# Called with (processed, current_title) before and after every selection.
ProgressCallback = Callable[[int, str | None], Awaitable[None] | None]


class ApplyEngine:
    """Applies track selections to the library.

    Parameters
    ----------
    library_store:
        Where tracks are read from and written to.
    providers:
        Catalog adapters by provider name, used for detail fetches.
    analysis_scheduler:
        Receives file paths of tracks that still lack bpm or key.  Optional.
    """

    def __init__(
        self,
        library_store: ILibraryStore,
        providers: dict[str, ITrackProvider],
        analysis_scheduler: IAnalysisScheduler | None = None,
    ) -> None:
        self._store = library_store
        self._providers = dict(providers)
        self._scheduler = analysis_scheduler
        self._logger: structlog.BoundLogger = get_logger(__name__)

    async def apply(
        self,
        selections: list[TrackSelection],
        on_progress: ProgressCallback | None = None,
    ) -> ApplyOutcome:
        """Apply every selection and report what happened to each.

        Never raises for a single selection's failure; those are collected
        into ``ApplyOutcome.errors``.
        """
        updated: list[LocalTrack] = []
        errors: list[ApplyError] = []
        skipped: list[str] = []
        analysis_paths: list[str] = []

        for index, selection in enumerate(selections):
            title = selection.candidate.candidate.title if selection.candidate else None
            await self._report(on_progress, index, title)

            if selection.candidate is None:
                self._logger.debug("selection_skipped", track_id=selection.track_id)
                skipped.append(selection.track_id)
                await self._report(on_progress, index + 1, title)
                continue

            try:
                track = await self._apply_one(selection, selection.candidate)
            except TaggerError as exc:
                self._logger.warning(
                    "selection_apply_failed",
                    track_id=selection.track_id,
                    error=str(exc),
                    error_type=type(exc).__name__,
                )
                errors.append(ApplyError(track_id=selection.track_id, error=str(exc)))
            except Exception as exc:
                # Store implementations may raise their own exception types.
                self._logger.warning(
                    "selection_apply_failed",
                    track_id=selection.track_id,
                    error=str(exc),
                    error_type=type(exc).__name__,
                )
                errors.append(
                    ApplyError(
                        track_id=selection.track_id,
                        error=f"{type(exc).__name__}: {exc}",
                    )
                )
            else:
                updated.append(track)
                if track.needs_analysis and track.path and track.path not in analysis_paths:
                    analysis_paths.append(track.path)

            await self._report(on_progress, index + 1, title)

        scheduled = self._schedule_analysis(analysis_paths)

        self._logger.info(
            "selections_applied",
            total=len(selections),
            updated=len(updated),
            errors=len(errors),
            skipped=len(skipped),
            analysis_scheduled=len(scheduled),
        )
        return ApplyOutcome(
            updated=tuple(updated),
            errors=tuple(errors),
            skipped=tuple(skipped),
            analysis_scheduled=tuple(scheduled),
        )

    # -- Per-selection steps ------------------------------------------------

    async def _apply_one(
        self, selection: TrackSelection, scored: ScoredCandidate
    ) -> LocalTrack:
        track = await self._store.find_track_by_id(selection.track_id)
        if track is None:
            raise TrackNotFoundError(selection.track_id)

        candidate = await self.resolve_candidate(scored)
        if not candidate.supplied_fields() and not selection.clear_fields:
            raise SelectionError(
                "Candidate supplies no usable fields", provider_name=scored.provider
            )
        fields = self.merge_fields(candidate, selection.clear_fields, track)
        if not fields:
            self._logger.info("track_unchanged", track_id=track.id, provider=scored.provider)
            return track

        updated = track.model_copy(update=fields)
        await self._store.update_track(updated)
        self._logger.info(
            "track_updated",
            track_id=track.id,
            provider=scored.provider,
            fields=sorted(fields),
        )
        return updated

    async def resolve_candidate(self, scored: ScoredCandidate) -> RawCandidate:
        """Return the full candidate data, fetching details when supported.

        A failing detail fetch, or one that reports the candidate as gone,
        falls back to the data the search already returned.
        """
        raw = scored.candidate
        provider = self._providers.get(scored.provider)
        if not isinstance(provider, DetailFetcher):
            return raw

        try:
            details = await provider.fetch_details(raw.id)
        except Exception as exc:
            self._logger.warning(
                "detail_fetch_failed",
                provider=scored.provider,
                candidate_id=raw.id,
                error=str(exc),
            )
            return raw

        if details is None:
            self._logger.info(
                "candidate_unavailable", provider=scored.provider, candidate_id=raw.id
            )
            return raw
        return raw.merged_with(details)

    def merge_fields(
        self,
        candidate: RawCandidate,
        clear_fields: tuple[str, ...] = (),
        track: LocalTrack | None = None,
    ) -> dict[str, Any]:
        """Fields to write: what the candidate supplies plus accepted clears.

        With *track* given, supplied values that would overwrite a deliberate
        local value are dropped.  A field named in *clear_fields* is never
        kept this way.
        """
        fields = candidate.supplied_fields()
        if track is not None:
            for name in preserved_fields(track, fields):
                if name in clear_fields:
                    continue
                self._logger.info(
                    "field_preserved",
                    track_id=track.id,
                    field=name,
                    local=getattr(track, name),
                    catalog=fields.pop(name),
                )
        for name in clear_fields:
            if name not in WRITABLE_FIELDS:
                self._logger.warning("clear_field_ignored", field=name)
                continue
            fields.setdefault(name, None)
        return fields

    # -- Side effects -------------------------------------------------------

    def _schedule_analysis(self, paths: list[str]) -> list[str]:
        if not paths or self._scheduler is None:
            return []
        try:
            self._scheduler.schedule_analysis(list(paths))
        except Exception as exc:
            self._logger.warning(
                "analysis_schedule_failed", paths=len(paths), error=str(exc)
            )
            return []
        return paths

    @staticmethod
    async def _report(
        on_progress: ProgressCallback | None, processed: int, title: str | None
    ) -> None:
        if on_progress is None:
            return
        result = on_progress(processed, title)
        if inspect.isawaitable(result):
            await result
