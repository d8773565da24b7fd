"""Candidate scoring: how well does a catalog candidate match a library track?

The confidence is a weighted average of two signals:

* **text similarity** -- symmetric overlap between the normalized token
  sets of both sides (title + artist, plus album when both sides have one).
  An exact token counts 1; a near-typo (rapidfuzz ``ratio`` of at least
  ``fuzzy_cutoff``) counts its ratio; anything else counts 0.  Near-typos
  only count once the two sets share at least one exact token, so sets
  with no token in common give 0.0 however similar they look.  Identical
  sets give 1.0.
* **duration proximity** -- 1.0 within ``duration_tolerance`` seconds,
  decaying linearly to 0.0 over the following ``duration_decay`` seconds.
  When either duration is unknown the signal is left out of the average
  rather than counted as 0.

Scoring is a pure function of the track and the candidate: no state is
kept between calls.
"""

from __future__ import annotations

import structlog
from rapidfuzz import fuzz

from tagresolver.models.candidate import RawCandidate
from tagresolver.models.track import LocalTrack
from tagresolver.utils.confidence import calculate_confidence
from tagresolver.utils.logging import get_logger
from tagresolver.utils.text_normalizer import normalize

_DEFAULT_FUZZY_CUTOFF = 85.0


class CandidateScorer:
    """Scores RawCandidates against a LocalTrack.

    Parameters
    ----------
    duration_tolerance:
        Seconds of difference still considered a perfect duration match.
    duration_decay:
        Seconds past the tolerance over which proximity falls to zero.
    text_weight, duration_weight:
        Weights of the two signals.  Text must outweigh duration; duration
        is a disambiguator because many catalog entries lack it.
    fuzzy_cutoff:
        Minimum rapidfuzz ratio (0-100) for a non-identical token to earn
        partial credit.
    """

    def __init__(
        self,
        duration_tolerance: float = 2.0,
        duration_decay: float = 30.0,
        text_weight: float = 0.8,
        duration_weight: float = 0.2,
        fuzzy_cutoff: float = _DEFAULT_FUZZY_CUTOFF,
    ) -> None:
        if text_weight <= duration_weight:
            raise ValueError("text_weight must be greater than duration_weight")
        if duration_decay <= 0:
            raise ValueError("duration_decay must be positive")
        self._duration_tolerance = duration_tolerance
        self._duration_decay = duration_decay
        self._text_weight = text_weight
        self._duration_weight = duration_weight
        self._fuzzy_cutoff = fuzzy_cutoff
        self._logger: structlog.BoundLogger = get_logger(__name__)

    # -- Public API -----------------------------------------------------------

    @staticmethod
    def is_scorable(candidate: RawCandidate) -> bool:
        """A candidate is scorable only if its title or artists yield tokens."""
        return bool(normalize([candidate.title, *candidate.artists]))

    def score(self, track: LocalTrack, candidate: RawCandidate) -> float:
        """Return the confidence in ``[0, 1]`` that *candidate* is *track*."""
        confidence, _ = self.evaluate(track, candidate)
        return confidence

    def evaluate(
        self, track: LocalTrack, candidate: RawCandidate
    ) -> tuple[float, tuple[str, ...]]:
        """Score *candidate* and report which track tokens it matched.

        Returns
        -------
        tuple[float, tuple[str, ...]]
            The confidence and the sorted track tokens that found an exact
            or near match on the candidate side.
        """
        use_album = bool(track.album and candidate.album)
        track_tokens = set(
            normalize([track.title, track.artist, track.album if use_album else None])
        )
        if not track_tokens:
            return 0.0, ()

        # A catalog may split "Title (Original Mix)" into title and mix name.
        # Score both readings and keep the better one.
        titles = {candidate.title, candidate.full_title}
        best_text = 0.0
        best_matched: set[str] = set()
        for title in titles:
            candidate_tokens = set(
                normalize([title, *candidate.artists, candidate.album if use_album else None])
            )
            if not candidate_tokens:
                continue
            similarity, matched = self.text_similarity(track_tokens, candidate_tokens)
            if similarity > best_text:
                best_text, best_matched = similarity, matched

        # No shared text means no match, whatever the duration says.
        if best_text == 0.0:
            return 0.0, ()

        scores = [best_text]
        weights = [self._text_weight]
        proximity = self.duration_proximity(track.duration, candidate.duration)
        if proximity is not None:
            scores.append(proximity)
            weights.append(self._duration_weight)

        confidence = calculate_confidence(scores, weights)
        self._logger.debug(
            "candidate_scored",
            track_id=track.id,
            candidate_id=candidate.id,
            text=round(best_text, 3),
            duration=None if proximity is None else round(proximity, 3),
            confidence=round(confidence, 3),
        )
        return confidence, tuple(sorted(best_matched))

    # -- Signals --------------------------------------------------------------

    def text_similarity(
        self, left: set[str], right: set[str]
    ) -> tuple[float, set[str]]:
        """Symmetric token-set similarity in ``[0, 1]``.

        Every token on each side earns the credit of its best counterpart
        on the other side; the similarity is the total credit divided by
        the total number of tokens.  Returns the similarity and the
        ``left`` tokens that earned credit.

        Sets without a shared exact token score 0.0: near-typo credit only
        refines a match that is already anchored.
        """
        if not left or not right or left.isdisjoint(right):
            return 0.0, set()

        matched: set[str] = set()
        credit = 0.0
        for token in left:
            token_credit = self._token_credit(token, right)
            if token_credit > 0:
                matched.add(token)
            credit += token_credit
        for token in right:
            credit += self._token_credit(token, left)

        return credit / (len(left) + len(right)), matched

    def duration_proximity(
        self, track_duration: float | None, candidate_duration: float | None
    ) -> float | None:
        """Return the duration signal, or ``None`` when either side is unknown."""
        if not track_duration or not candidate_duration:
            return None
        difference = abs(track_duration - candidate_duration)
        if difference <= self._duration_tolerance:
            return 1.0
        overshoot = difference - self._duration_tolerance
        return max(0.0, 1.0 - overshoot / self._duration_decay)

    # -- Private helpers ------------------------------------------------------

    def _token_credit(self, token: str, others: set[str]) -> float:
        if token in others:
            return 1.0
        best = 0.0
        for other in others:
            ratio = fuzz.ratio(token, other)
            if ratio >= self._fuzzy_cutoff and ratio > best:
                best = ratio
        return best / 100.0
