"""Pydantic models for npm-solution-scout."""

from solution_scout.models.model_eval import (
    CompositeWeights,
    EvaluationResult,
    LicenseCompatibility,
    RankedCandidate,
    RankingReasons,
    RankingThresholds,
    ScoreRecord,
    ScoringContext,
)
from solution_scout.models.model_install import (
    AuditResult,
    InstallReport,
    InstallResult,
    PackageManager,
    ScriptResult,
)
from solution_scout.models.model_package import PackageMetadata
from solution_scout.models.model_search import SearchHit, SearchMethod, SearchResponse

__all__ = [
    # Registry models
    "PackageMetadata",
    "SearchHit",
    "SearchMethod",
    "SearchResponse",
    # Evaluation models
    "CompositeWeights",
    "EvaluationResult",
    "LicenseCompatibility",
    "RankedCandidate",
    "RankingReasons",
    "RankingThresholds",
    "ScoreRecord",
    "ScoringContext",
    # Installation models
    "AuditResult",
    "InstallReport",
    "InstallResult",
    "PackageManager",
    "ScriptResult",
]
