"""Confidence arithmetic shared by the scorer and the decision policy.

Every confidence in tagresolver lives in ``[0.0, 1.0]``.  Individual match
signals (text similarity, duration proximity) are combined with
:func:`calculate_confidence`; :func:`confidence_to_level` maps the final
number onto a tier shown in the CLI's list of tracks that need a selection.
"""

from enum import Enum


class ConfidenceLevel(Enum):
    """Human-readable confidence tiers."""

    VERY_LOW = "very_low"    # < 0.2
    LOW = "low"              # 0.2 - 0.4
    MEDIUM = "medium"        # 0.4 - 0.6
    HIGH = "high"            # 0.6 - 0.8
    VERY_HIGH = "very_high"  # >= 0.8


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    """Clamp *value* into ``[low, high]``."""
    return max(low, min(high, value))


def calculate_confidence(
    scores: list[float],
    weights: list[float] | None = None,
) -> float:
    """Compute a weighted average confidence score.

    Signals that are unknown should be left out of ``scores`` entirely
    (together with their weight) rather than passed as ``0.0``; the
    remaining weights are renormalised by the division.

    Args:
        scores: Individual confidence scores, each in [0.0, 1.0].
        weights: Optional weights for each score. Defaults to equal weighting.

    Returns:
        Weighted average clamped to [0.0, 1.0].

    Raises:
        ValueError: If scores is empty or lengths of scores and weights differ.
    """
    if not scores:
        raise ValueError("scores must not be empty")

    if weights is None:
        weights = [1.0] * len(scores)

    if len(scores) != len(weights):
        raise ValueError("scores and weights must have the same length")

    total_weight = sum(weights)
    if total_weight == 0:
        return 0.0

    weighted_sum = sum(s * w for s, w in zip(scores, weights, strict=True))
    return clamp(weighted_sum / total_weight)


def confidence_to_level(score: float) -> ConfidenceLevel:
    """Map a numeric confidence score to a human-readable level.

    Args:
        score: Confidence score in [0.0, 1.0].

    Returns:
        Corresponding ConfidenceLevel enum member.
    """
    if score < 0.2:
        return ConfidenceLevel.VERY_LOW
    if score < 0.4:
        return ConfidenceLevel.LOW
    if score < 0.6:
        return ConfidenceLevel.MEDIUM
    if score < 0.8:
        return ConfidenceLevel.HIGH
    return ConfidenceLevel.VERY_HIGH
