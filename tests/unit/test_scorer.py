"""Unit tests for CandidateScorer."""

from __future__ import annotations

import pytest

from tagresolver.models.candidate import Verdict
from tagresolver.models.track import LocalTrack
from tagresolver.pipeline.decision_policy import decide
from tagresolver.services.scorer import CandidateScorer
from tests.conftest import make_raw, make_scored


@pytest.fixture()
def scorer() -> CandidateScorer:
    return CandidateScorer(duration_tolerance=2.0, duration_decay=30.0)


@pytest.fixture()
def track() -> LocalTrack:
    return LocalTrack(
        id="t1", title="Strings of Life", artist="Rhythim Is Rhythim", duration=452.0
    )


class TestScore:
    def test_identical_metadata_scores_one(self, scorer: CandidateScorer, track: LocalTrack) -> None:
        candidate = make_raw(duration=452.0)
        assert scorer.score(track, candidate) == pytest.approx(1.0)

    def test_duration_within_tolerance_is_perfect(
        self, scorer: CandidateScorer, track: LocalTrack
    ) -> None:
        candidate = make_raw(duration=453.5)
        assert scorer.score(track, candidate) == pytest.approx(1.0)

    def test_disjoint_text_scores_zero_despite_equal_duration(
        self, scorer: CandidateScorer, track: LocalTrack
    ) -> None:
        candidate = make_raw(title="Xylophone", artists=("Zebra",), duration=452.0)
        assert scorer.score(track, candidate) == 0.0

    def test_all_typo_variants_stay_below_auto_apply(self, scorer: CandidateScorer) -> None:
        track = LocalTrack(id="t", title="Children", artist="Robert Miles", duration=420.0)
        candidate = make_raw(title="Childrn", artists=("Roberts Mile",), duration=420.0)
        confidence = scorer.score(track, candidate)
        assert confidence < 0.9
        assert decide([make_scored(confidence=confidence)], 0.9) is Verdict.NEEDS_SELECTION

    def test_unknown_duration_is_left_out(self, scorer: CandidateScorer) -> None:
        track = LocalTrack(id="t", title="Deep Space", artist=None, duration=None)
        candidate = make_raw(title="Deep Jungle", artists=(), duration=300.0)
        # Text similarity alone: 2 exact credits out of 4 tokens.
        assert scorer.score(track, candidate) == pytest.approx(0.5)

    def test_distant_duration_lowers_confidence(
        self, scorer: CandidateScorer, track: LocalTrack
    ) -> None:
        candidate = make_raw(duration=600.0)
        assert scorer.score(track, candidate) == pytest.approx(0.8)

    def test_album_ignored_when_only_one_side_has_it(self, scorer: CandidateScorer) -> None:
        track = LocalTrack(id="t", title="Strings of Life", artist="Rhythim Is Rhythim", album="Classics")
        assert scorer.score(track, make_raw()) == pytest.approx(1.0)

    def test_album_compared_when_both_sides_have_it(self, scorer: CandidateScorer) -> None:
        track = LocalTrack(id="t", title="Strings of Life", artist="Rhythim Is Rhythim", album="Classics")
        candidate = make_raw(album="Innovator")
        assert scorer.score(track, candidate) < 1.0

    def test_mix_name_reading_is_considered(self, scorer: CandidateScorer) -> None:
        track = LocalTrack(id="t", title="Strings of Life (Original Mix)", artist="Rhythim Is Rhythim")
        candidate = make_raw(mix_name="Original Mix")
        assert scorer.score(track, candidate) == pytest.approx(1.0)

    def test_accents_do_not_matter(self, scorer: CandidateScorer) -> None:
        track = LocalTrack(id="t", title="Café Del Mar", artist="Energy 52")
        candidate = make_raw(title="CAFE DEL MAR", artists=("Energy 52",))
        assert scorer.score(track, candidate) == pytest.approx(1.0)

    def test_score_is_deterministic(self, scorer: CandidateScorer, track: LocalTrack) -> None:
        candidate = make_raw(title="Strings of Life (Remix)", duration=470.0)
        assert scorer.score(track, candidate) == scorer.score(track, candidate)

    def test_evaluate_reports_matched_tokens(self, scorer: CandidateScorer, track: LocalTrack) -> None:
        _, matched = scorer.evaluate(track, make_raw(title="Strings", artists=()))
        assert matched == ("strings",)

    def test_track_without_tokens_scores_zero(self, scorer: CandidateScorer) -> None:
        track = LocalTrack(id="t", title=None, artist=None)
        assert scorer.score(track, make_raw()) == 0.0


class TestSignals:
    def test_text_similarity_symmetric(self, scorer: CandidateScorer) -> None:
        left, right = {"deep", "space"}, {"deep", "jungle", "mix"}
        forward, _ = scorer.text_similarity(left, right)
        backward, _ = scorer.text_similarity(right, left)
        assert forward == pytest.approx(backward)

    def test_near_typo_earns_partial_credit(self, scorer: CandidateScorer) -> None:
        similarity, matched = scorer.text_similarity({"rhythm", "life"}, {"rhythim", "life"})
        assert 0.9 < similarity < 1.0
        assert matched == {"rhythm", "life"}

    def test_near_typos_alone_earn_nothing(self, scorer: CandidateScorer) -> None:
        similarity, matched = scorer.text_similarity(
            {"children", "robert", "miles"}, {"childrn", "roberts", "mile"}
        )
        assert similarity == 0.0
        assert matched == set()

    def test_unrelated_tokens_earn_nothing(self, scorer: CandidateScorer) -> None:
        similarity, matched = scorer.text_similarity({"house"}, {"techno"})
        assert similarity == 0.0
        assert matched == set()

    @pytest.mark.parametrize(
        ("track_duration", "candidate_duration", "expected"),
        [
            (300.0, 301.0, 1.0),
            (300.0, 317.0, 0.5),
            (300.0, 400.0, 0.0),
            (None, 300.0, None),
            (300.0, None, None),
        ],
    )
    def test_duration_proximity(
        self,
        scorer: CandidateScorer,
        track_duration: float | None,
        candidate_duration: float | None,
        expected: float | None,
    ) -> None:
        result = scorer.duration_proximity(track_duration, candidate_duration)
        if expected is None:
            assert result is None
        else:
            assert result == pytest.approx(expected)


class TestScorable:
    def test_candidate_with_tokens_is_scorable(self) -> None:
        assert CandidateScorer.is_scorable(make_raw()) is True

    def test_candidate_without_title_or_artist_tokens_is_not(self) -> None:
        assert CandidateScorer.is_scorable(make_raw(title="!!!", artists=())) is False


def test_text_must_outweigh_duration() -> None:
    with pytest.raises(ValueError):
        CandidateScorer(text_weight=0.5, duration_weight=0.5)
