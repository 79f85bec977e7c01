"""Quality evaluator based on package metadata completeness."""

from solution_scout.consts import TYPES_NAMESPACE_PREFIX
from solution_scout.models.model_eval import ScoringContext
from solution_scout.models.model_package import PackageMetadata

BUNDLED_TYPES_BONUS = 3
TYPES_NAMESPACE_BONUS = 2
METADATA_BONUS = 1

MAX_SCORE = 10


class QualityEvaluator:
    """Evaluates packages on TypeScript support and metadata hygiene.

    Additive:
        bundled types (types/typings) +3, else @types/ package +2
        repository +1, keywords +1, homepage +1, maintainers +1

    The maximum reachable today is 7; the cap at 10 leaves room for new
    signals.
    """

    def evaluate(self, package: PackageMetadata, context: ScoringContext) -> int:
        """Calculate quality score.

        Args:
            package: The package to evaluate
            context: Evaluation context (unused for quality scoring)

        Returns:
            Quality score between 0-10
        """
        score = 0

        if package.has_types:
            score += BUNDLED_TYPES_BONUS
        elif package.name.startswith(TYPES_NAMESPACE_PREFIX):
            score += TYPES_NAMESPACE_BONUS

        if package.repository is not None:
            score += METADATA_BONUS
        if package.keywords:
            score += METADATA_BONUS
        if package.homepage:
            score += METADATA_BONUS
        if package.maintainers:
            score += METADATA_BONUS

        return max(0, min(MAX_SCORE, score))
