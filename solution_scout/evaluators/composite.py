"""Composite scoring for combining dimension scores."""

import math

from solution_scout.models.model_eval import CompositeWeights


def round_half_up(value: float, digits: int = 1) -> float:
    """Round like the registry tooling does (x.x5 rounds up, not to even)."""
    factor = 10**digits
    return math.floor(value * factor + 0.5) / factor


def calculate_composite_score(
    quality: int,
    maintenance: int,
    security: int,
    popularity: int,
    weights: CompositeWeights | None = None,
) -> float:
    """Calculate the weighted composite score.

    composite = quality*0.15 + maintenance*0.25 + security*0.20
                + popularity*0.10 + 3.0

    The constant stands in for problem fit, which the caller judges. The
    weights total 0.70, so the result is not a weighted average and is not
    clamped to 0-10; comparison thresholds downstream rely on this scale.

    Args:
        quality: Quality score (0-10)
        maintenance: Maintenance score (0-10)
        security: Security score (0-10)
        popularity: Popularity score (0-10)
        weights: Dimension weights (defaults to CompositeWeights())

    Returns:
        Composite score rounded to one decimal place
    """
    weights = weights or CompositeWeights()
    composite = (
        quality * weights.quality
        + maintenance * weights.maintenance
        + security * weights.security
        + popularity * weights.popularity
    ) + weights.fit_placeholder
    return round_half_up(composite, 1)
