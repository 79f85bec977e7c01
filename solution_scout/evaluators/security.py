"""Security evaluator for deprecation and suspicious naming."""

from solution_scout.models.model_eval import ScoringContext
from solution_scout.models.model_package import PackageMetadata

BASE_SCORE = 10
DEPRECATED_PENALTY = 8
SUSPICIOUS_NAME_PENALTY = 3

# Placeholder/typosquat heuristic: both fragments present in the name
SUSPICIOUS_NAME_FRAGMENTS = ("test", "package")


def has_suspicious_name(name: str) -> bool:
    """Whether the name looks like a placeholder or squatted package."""
    lowered = name.lower()
    return all(fragment in lowered for fragment in SUSPICIOUS_NAME_FRAGMENTS)


class SecurityEvaluator:
    """Evaluates packages on coarse risk signals.

    This is not a vulnerability scan; the post-install audit is the
    authoritative source.

    Algorithm:
        security_score = 10 - (deprecated × 8) - (suspicious name × 3)
        Minimum: 0
    """

    def evaluate(self, package: PackageMetadata, context: ScoringContext) -> int:
        """Calculate security score.

        Args:
            package: The package to evaluate
            context: Evaluation context (unused for security scoring)

        Returns:
            Security score between 0-10
        """
        score = BASE_SCORE

        if package.is_deprecated:
            score -= DEPRECATED_PENALTY

        if has_suspicious_name(package.name):
            score -= SUSPICIOUS_NAME_PENALTY

        return max(0, score)
