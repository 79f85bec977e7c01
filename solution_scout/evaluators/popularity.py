"""Popularity evaluator based on weekly download tiers."""

from solution_scout.consts import POPULARITY_FLOOR, POPULARITY_STEPS
from solution_scout.models.model_eval import ScoringContext
from solution_scout.models.model_package import PackageMetadata


def popularity_for_downloads(downloads: int) -> int:
    """Map weekly downloads to a 1-10 step score.

    The step function is monotonic and unsmoothed; ranking tie-breaks use
    this value rather than raw downloads.
    """
    for minimum, score in POPULARITY_STEPS:
        if downloads >= minimum:
            return score
    return POPULARITY_FLOOR


class PopularityEvaluator:
    """Evaluates packages on weekly downloads.

    Tiers:
        >= 10M -> 10, >= 1M -> 8, >= 100k -> 6, >= 10k -> 4, >= 1k -> 2, else 1
    """

    def evaluate(self, package: PackageMetadata, context: ScoringContext) -> int:
        return popularity_for_downloads(context.downloads)
