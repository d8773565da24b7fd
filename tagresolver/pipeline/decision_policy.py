"""Decision policy: auto-apply, ask the user, or give up.

Looks only at the top-ranked candidate:

    top confidence >= threshold  -> AUTO_APPLY
    any candidate at all         -> NEEDS_SELECTION
    no candidates                -> NO_CANDIDATES
"""

from __future__ import annotations

from collections.abc import Sequence

from tagresolver.models.candidate import ScoredCandidate, Verdict


def decide(candidates: Sequence[ScoredCandidate], threshold: float) -> Verdict:
    """Classify a ranked candidate list.

    Args:
        candidates: Candidates in rank order (best first).
        threshold: Auto-apply confidence threshold in [0.0, 1.0].

    Returns:
        The verdict for the track.
    """
    if not candidates:
        return Verdict.NO_CANDIDATES
    if candidates[0].confidence >= threshold:
        return Verdict.AUTO_APPLY
    return Verdict.NEEDS_SELECTION
