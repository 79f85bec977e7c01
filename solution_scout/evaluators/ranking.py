"""Presentation ordering and recommendation policy for evaluated candidates.

Evaluation keeps input order. Ranking is applied afterwards, when results are
shown or a single package has to be picked.
"""

import logging

from solution_scout.models.model_eval import (
    EvaluationResult,
    LicenseCompatibility,
    RankedCandidate,
    RankingReasons,
    RankingThresholds,
)

logger = logging.getLogger(__name__)


def _sort_key(result: EvaluationResult) -> tuple[bool, float, int, str]:
    # Errors last, then composite desc, popularity desc, name asc
    return (
        result.failed,
        -result.scores.composite,
        -result.scores.popularity,
        result.name,
    )


def exclusion_reasons(result: EvaluationResult, thresholds: RankingThresholds) -> list[str]:
    """Reason codes that keep a candidate from being recommended.

    Args:
        result: Evaluation to check
        thresholds: Ranking policy

    Returns:
        Reason codes, empty when the candidate is eligible
    """
    if result.failed:
        return [RankingReasons.ERROR]

    reasons = []
    if result.scores.composite < thresholds.min_composite:
        reasons.append(RankingReasons.LOW_SCORE)
    if (
        thresholds.exclude_problematic_licenses
        and result.license_compatibility == LicenseCompatibility.PROBLEMATIC
    ):
        reasons.append(RankingReasons.PROBLEMATIC_LICENSE)
    if thresholds.exclude_deprecated and result.deprecated:
        reasons.append(RankingReasons.DEPRECATED)
    return reasons


def rank_evaluations(
    results: list[EvaluationResult],
    thresholds: RankingThresholds | None = None,
) -> list[RankedCandidate]:
    """Order evaluations for presentation and flag ineligible ones.

    Args:
        results: Evaluations in any order
        thresholds: Ranking policy (defaults if None)

    Returns:
        RankedCandidates, best first, ranks starting at 1
    """
    thresholds = thresholds or RankingThresholds()
    ranked = []

    for rank, result in enumerate(sorted(results, key=_sort_key), start=1):
        reasons = exclusion_reasons(result, thresholds)
        if reasons:
            logger.debug(f"Ranking excluded {result.name}: {reasons}")
        ranked.append(
            RankedCandidate(rank=rank, evaluation=result, excluded=bool(reasons), reasons=reasons)
        )

    excluded_count = sum(1 for candidate in ranked if candidate.excluded)
    logger.info(f"Ranked {len(ranked)} candidates ({excluded_count} excluded)")
    return ranked


def recommend(ranked: list[RankedCandidate]) -> RankedCandidate | None:
    """Best eligible candidate, or None when every candidate is excluded."""
    return next((candidate for candidate in ranked if not candidate.excluded), None)
