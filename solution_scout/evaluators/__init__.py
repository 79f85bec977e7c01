"""Evaluators module for scoring npm packages across multiple dimensions.

Packages are evaluated on four dimensions:
- Maintenance (publish recency and release cadence)
- Popularity (weekly downloads, step function)
- Quality (types, repository, keywords, homepage, maintainers)
- Security (deprecation and suspicious names)

All evaluators are stateless pure functions that take
PackageMetadata + ScoringContext -> score.
"""

from solution_scout.evaluators.base import BaseEvaluator
from solution_scout.evaluators.candidate_evaluator import CandidateEvaluator
from solution_scout.evaluators.composite import calculate_composite_score, round_half_up
from solution_scout.evaluators.license import classify_license, resolve_license
from solution_scout.evaluators.maintenance import MaintenanceEvaluator
from solution_scout.evaluators.popularity import PopularityEvaluator, popularity_for_downloads
from solution_scout.evaluators.quality import QualityEvaluator
from solution_scout.evaluators.ranking import exclusion_reasons, rank_evaluations, recommend
from solution_scout.evaluators.registry import EvaluatorRegistry
from solution_scout.evaluators.security import SecurityEvaluator, has_suspicious_name

__all__ = [
    # Protocol
    "BaseEvaluator",
    # Individual evaluators
    "MaintenanceEvaluator",
    "PopularityEvaluator",
    "QualityEvaluator",
    "SecurityEvaluator",
    # Orchestration
    "CandidateEvaluator",
    "EvaluatorRegistry",
    # Composite scoring
    "calculate_composite_score",
    "round_half_up",
    # License
    "classify_license",
    "resolve_license",
    # Ranking
    "exclusion_reasons",
    "rank_evaluations",
    "recommend",
    # Utilities
    "has_suspicious_name",
    "popularity_for_downloads",
]
