"""Fan-out / fan-in candidate search for one library track.

For one :class:`LocalTrack` the aggregator

1. calls ``search`` on every enabled provider *concurrently* and waits
   until all of them have settled (a join, not a race-to-first),
2. drops the failures with a warning -- one broken catalog never hides the
   others' candidates,
3. excludes candidates that cannot be scored (no title or artist tokens),
4. scores the rest, keeps those at or above ``min_score``,
5. ranks them with :func:`rank` and truncates to ``max_candidates``.

The provider collection is injected in priority order; the aggregator
never branches on provider names.
"""

from __future__ import annotations

import structlog

from tagresolver.models.candidate import RawCandidate, ScoredCandidate
from tagresolver.models.track import LocalTrack
from tagresolver.providers.catalog.registry import RegisteredProvider
from tagresolver.services.scorer import CandidateScorer
from tagresolver.utils.concurrency import gather_settled
from tagresolver.utils.logging import get_logger


def rank(candidates: list[ScoredCandidate], epsilon: float) -> list[ScoredCandidate]:
    """Order candidates by confidence with a provider-priority tie-break.

    Candidates are first sorted strictly by ``(-confidence, priority,
    provider, id)``.  The sorted list is then cut into runs: a run starts
    at its highest-confidence member (the leader) and contains every
    following candidate whose confidence is within ``epsilon`` of the
    leader.  Inside a run, candidates are reordered by ``(priority,
    -confidence, provider, id)``, so a preferred catalog wins near-ties.

    The result is a deterministic total order for a given configuration.
    """
    ordered = sorted(
        candidates,
        key=lambda c: (-c.confidence, c.priority, c.provider, c.candidate.id),
    )

    ranked: list[ScoredCandidate] = []
    index = 0
    while index < len(ordered):
        leader = ordered[index]
        end = index + 1
        while end < len(ordered) and leader.confidence - ordered[end].confidence <= epsilon:
            end += 1
        run = ordered[index:end]
        run.sort(key=lambda c: (c.priority, -c.confidence, c.provider, c.candidate.id))
        ranked.extend(run)
        index = end
    return ranked


class CandidateAggregator:
    """Collects, scores and ranks catalog candidates for a track.

    Parameters
    ----------
    providers:
        Enabled providers paired with their configuration, in priority order.
    scorer:
        The scorer shared by every provider's candidates.
    tie_break_epsilon:
        Confidence distance within which provider priority decides order.
    min_score:
        Candidates scoring below this are discarded.
    max_candidates:
        Maximum number of ranked candidates returned per track.
    """

    def __init__(
        self,
        providers: list[RegisteredProvider],
        scorer: CandidateScorer,
        tie_break_epsilon: float = 0.01,
        min_score: float = 0.3,
        max_candidates: int = 4,
    ) -> None:
        self._providers = list(providers)
        self._scorer = scorer
        self._epsilon = tie_break_epsilon
        self._min_score = min_score
        self._max_candidates = max_candidates
        self._logger: structlog.BoundLogger = get_logger(__name__)

    @property
    def provider_names(self) -> list[str]:
        return [p.name for p in self._providers]

    async def aggregate(self, track: LocalTrack) -> list[ScoredCandidate]:
        """Return the ranked candidates for *track* (possibly empty)."""
        if not self._providers:
            return []
        if not track.title and not track.artist:
            self._logger.info("track_not_searchable", track_id=track.id)
            return []

        results = await gather_settled(
            [
                registered.provider.search(
                    track.title or "", track.artist, registered.config.max_results
                )
                for registered in self._providers
            ]
        )

        scored: dict[str, ScoredCandidate] = {}
        for registered, result in zip(self._providers, results, strict=True):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                self._logger.warning(
                    "provider_search_failed",
                    provider=registered.name,
                    track_id=track.id,
                    error=str(result),
                    error_type=type(result).__name__,
                )
                continue

            for raw in result[: registered.config.max_results]:
                candidate = self._score(track, raw, registered)
                if candidate is None:
                    continue
                previous = scored.get(candidate.selection_id)
                if previous is None or candidate.confidence > previous.confidence:
                    scored[candidate.selection_id] = candidate

        ranked = rank(list(scored.values()), self._epsilon)[: self._max_candidates]
        self._logger.info(
            "candidates_aggregated",
            track_id=track.id,
            providers=len(self._providers),
            kept=len(ranked),
            top=round(ranked[0].confidence, 3) if ranked else None,
        )
        return ranked

    def _score(
        self,
        track: LocalTrack,
        raw: RawCandidate,
        registered: RegisteredProvider,
    ) -> ScoredCandidate | None:
        if not self._scorer.is_scorable(raw):
            self._logger.debug(
                "candidate_unscorable", provider=registered.name, candidate_id=raw.id
            )
            return None
        confidence, matched = self._scorer.evaluate(track, raw)
        if confidence < self._min_score:
            return None
        return ScoredCandidate(
            candidate=raw,
            provider=registered.name,
            priority=registered.config.priority,
            confidence=confidence,
            matched_tokens=matched,
        )
