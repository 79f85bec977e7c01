"""Maintenance evaluator for publish recency and release cadence."""

from datetime import datetime

from solution_scout.consts import DAYS_PER_MONTH
from solution_scout.models.model_eval import ScoringContext
from solution_scout.models.model_package import PackageMetadata

# Recency bonuses: (exclusive upper bound in months, bonus), first match wins
RECENCY_BONUSES = [
    (6, 3),
    (12, 2),
    (24, 1),
]
STALE_AFTER_MONTHS = 36
STALE_PENALTY = -5

# Release cadence: (minimum releases, bonus), first match wins
CADENCE_BONUSES = [
    (11, 2),
    (6, 1),
]

MIN_SCORE = 0
MAX_SCORE = 10


def months_since(timestamp: datetime, current_time: datetime) -> float:
    """Elapsed months (30-day units) between timestamp and current_time."""
    elapsed = current_time - timestamp
    return elapsed.total_seconds() / (DAYS_PER_MONTH * 24 * 3600)


def recency_bonus(months: float) -> int:
    """Single recency adjustment; 24-36 months is a neutral band."""
    for upper_bound, bonus in RECENCY_BONUSES:
        if months < upper_bound:
            return bonus
    if months > STALE_AFTER_MONTHS:
        return STALE_PENALTY
    return 0


def cadence_bonus(release_count: int) -> int:
    for minimum, bonus in CADENCE_BONUSES:
        if release_count >= minimum:
            return bonus
    return 0


class MaintenanceEvaluator:
    """Evaluates packages on how recently and how often they are published.

    Algorithm:
        score = recency_bonus(months since last publish)
        score += cadence_bonus(number of published versions)
        clamp to [0, 10]
        if deprecated: score = 0

    Deprecation is an absolute disqualifier: a deprecated package scores 0
    however fresh or frequently released it is. The override is applied last,
    so the cadence bonus never lifts a deprecated package above 0.
    """

    def evaluate(self, package: PackageMetadata, context: ScoringContext) -> int:
        """Calculate maintenance score.

        Args:
            package: The package to evaluate
            context: Evaluation context providing the reference time

        Returns:
            Maintenance score between 0-10
        """
        if package.is_deprecated:
            return MIN_SCORE

        months = months_since(package.last_publish(), context.current_time)
        score = recency_bonus(months) + cadence_bonus(package.release_count)

        return max(MIN_SCORE, min(MAX_SCORE, score))
