"""Turn user choices into :class:`TrackSelection` objects.

Clients only send back the ``"provider:id"`` key of the candidate they
picked.  The candidate itself (with its provider and confidence) is looked
up in the results of the run that produced it.
"""

from __future__ import annotations

from collections.abc import Iterable

from tagresolver.models.batch import ApplyError, SelectionChoice, TrackSelection
from tagresolver.models.candidate import CandidateResult


def resolve_choices(
    results: Iterable[CandidateResult],
    choices: Iterable[SelectionChoice],
) -> tuple[list[TrackSelection], list[ApplyError]]:
    """Match each choice to a candidate of the same track.

    A choice whose ``selection_id`` is not among that track's candidates
    becomes an :class:`ApplyError`; the other choices are unaffected.
    """
    by_track = {
        result.track_id: {c.selection_id: c for c in result.candidates}
        for result in results
    }
    selections: list[TrackSelection] = []
    errors: list[ApplyError] = []
    for choice in choices:
        if choice.selection_id is None:
            selections.append(TrackSelection(track_id=choice.track_id))
            continue
        candidate = by_track.get(choice.track_id, {}).get(choice.selection_id)
        if candidate is None:
            errors.append(
                ApplyError(
                    track_id=choice.track_id,
                    error=f"Unknown selection: {choice.selection_id}",
                )
            )
            continue
        selections.append(
            TrackSelection(
                track_id=choice.track_id,
                candidate=candidate,
                clear_fields=choice.clear_fields,
            )
        )
    return selections, errors
