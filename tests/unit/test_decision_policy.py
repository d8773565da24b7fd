"""Unit tests for the auto-apply decision policy."""

from __future__ import annotations

from tagresolver.models.candidate import Verdict
from tagresolver.pipeline.decision_policy import decide
from tests.conftest import make_scored


def test_no_candidates() -> None:
    assert decide([], 0.9) is Verdict.NO_CANDIDATES


def test_top_candidate_at_threshold_auto_applies() -> None:
    assert decide([make_scored(confidence=0.9)], 0.9) is Verdict.AUTO_APPLY


def test_top_candidate_below_threshold_needs_selection() -> None:
    assert decide([make_scored(confidence=0.89)], 0.9) is Verdict.NEEDS_SELECTION


def test_only_the_top_candidate_counts() -> None:
    ranked = [make_scored("a", confidence=0.5), make_scored("b", confidence=0.99)]
    assert decide(ranked, 0.9) is Verdict.NEEDS_SELECTION


def test_threshold_zero_always_applies_when_candidates_exist() -> None:
    assert decide([make_scored(confidence=0.0)], 0.0) is Verdict.AUTO_APPLY
