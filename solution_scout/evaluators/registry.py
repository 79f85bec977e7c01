"""Evaluator registry for orchestrating all dimension evaluators."""

from datetime import datetime

from solution_scout.evaluators.composite import calculate_composite_score
from solution_scout.evaluators.license import classify_license, resolve_license
from solution_scout.evaluators.maintenance import MaintenanceEvaluator
from solution_scout.evaluators.popularity import PopularityEvaluator
from solution_scout.evaluators.quality import QualityEvaluator
from solution_scout.evaluators.security import SecurityEvaluator
from solution_scout.models.model_eval import (
    CompositeWeights,
    EvaluationResult,
    ScoreRecord,
    ScoringContext,
)
from solution_scout.models.model_package import PackageMetadata


class EvaluatorRegistry:
    """Orchestrates all evaluators to score packages.

    Runs each dimension evaluator, combines them into the composite score
    and builds the EvaluationResult. Holds no per-package state, so one
    registry can be shared by concurrent evaluations.
    """

    def __init__(self, weights: CompositeWeights | None = None) -> None:
        """Initialize registry with all evaluators."""
        self.weights = weights or CompositeWeights()
        self.evaluators = {
            "maintenance": MaintenanceEvaluator(),
            "popularity": PopularityEvaluator(),
            "quality": QualityEvaluator(),
            "security": SecurityEvaluator(),
        }

    def context_for(self, downloads: int, current_time: datetime | None = None) -> ScoringContext:
        """Build the scoring context for one package."""
        if current_time is None:
            return ScoringContext(downloads=max(0, downloads), weights=self.weights)
        return ScoringContext(
            downloads=max(0, downloads), current_time=current_time, weights=self.weights
        )

    def score(self, package: PackageMetadata, context: ScoringContext) -> ScoreRecord:
        """Compute all dimension scores and the composite.

        Args:
            package: Package metadata from the registry
            context: Download count, reference time and weights

        Returns:
            Immutable ScoreRecord
        """
        maintenance = self.evaluators["maintenance"].evaluate(package, context)
        popularity = self.evaluators["popularity"].evaluate(package, context)
        quality = self.evaluators["quality"].evaluate(package, context)
        security = self.evaluators["security"].evaluate(package, context)

        return ScoreRecord(
            maintenance=maintenance,
            popularity=popularity,
            quality=quality,
            security=security,
            composite=calculate_composite_score(
                quality=quality,
                maintenance=maintenance,
                security=security,
                popularity=popularity,
                weights=context.weights,
            ),
        )

    def evaluate_package(
        self,
        package: PackageMetadata,
        downloads: int,
        current_time: datetime | None = None,
        name: str | None = None,
    ) -> EvaluationResult:
        """Score a package and assemble its evaluation record.

        Args:
            package: Package metadata from the registry
            downloads: Weekly download count (negative values count as 0)
            current_time: Reference time for recency (defaults to now)
            name: Name the package was requested under (defaults to package.name)

        Returns:
            Fully populated EvaluationResult
        """
        context = self.context_for(downloads, current_time)
        license_name = resolve_license(package)

        return EvaluationResult(
            name=name or package.name,
            version=package.version,
            description=package.description,
            downloads=context.downloads,
            last_publish=package.published_at(),
            deprecated=package.is_deprecated,
            license=license_name,
            license_compatibility=classify_license(license_name),
            repository=package.repository_url,
            homepage=package.homepage,
            has_types=package.has_types,
            keywords=list(package.keywords),
            maintainers=len(package.maintainers),
            scores=self.score(package, context),
        )

    @staticmethod
    def failed_evaluation(name: str, error: str) -> EvaluationResult:
        """Evaluation record for a package whose metadata could not be fetched."""
        return EvaluationResult(name=name, error=error, scores=ScoreRecord.zero())
