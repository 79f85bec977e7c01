"""Base evaluator protocol defining the contract for all evaluators."""

from typing import Protocol

from solution_scout.models.model_eval import ScoringContext
from solution_scout.models.model_package import PackageMetadata


class BaseEvaluator(Protocol):
    """Protocol defining the evaluator contract.

    Evaluators are pure functions that take a PackageMetadata and a
    ScoringContext and return an integer score between 0-10. They must be
    total: missing or malformed metadata yields a default, never an error.
    """

    def evaluate(self, package: PackageMetadata, context: ScoringContext) -> int:
        """Evaluate package on this dimension.

        Args:
            package: The package to evaluate
            context: Download count, reference time and weights

        Returns:
            Score between 0-10 for this dimension
        """
        ...
