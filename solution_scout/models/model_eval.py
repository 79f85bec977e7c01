"""Evaluation result models and scoring configuration."""

from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from solution_scout.consts import MIN_COMPOSITE_SCORE
from solution_scout.models.common import _utc_now


class LicenseCompatibility(str, Enum):
    """Advisory license classification."""

    COMPATIBLE = "compatible"
    PROBLEMATIC = "problematic"
    UNKNOWN = "unknown"


class CompositeWeights(BaseModel):
    """Dimension weights for the composite score.

    The four weights intentionally do not sum to 1.0 (default total 0.70),
    and ``fit_placeholder`` stands in for the problem-fit dimension that only
    the caller can judge. Existing comparison thresholds depend on this exact
    formula, so there is no normalization validator here.
    """

    quality: float = Field(default=0.15, ge=0.0, le=1.0)
    maintenance: float = Field(default=0.25, ge=0.0, le=1.0)
    security: float = Field(default=0.20, ge=0.0, le=1.0)
    popularity: float = Field(default=0.10, ge=0.0, le=1.0)
    fit_placeholder: float = Field(default=3.0, ge=0.0)


class ScoringContext(BaseModel):
    """Inputs shared by the stateless evaluators.

    Evaluators never fetch anything themselves. The download count and the
    reference time arrive here, so the same context always yields the same
    scores.
    """

    downloads: int = Field(default=0, ge=0, description="Weekly downloads")
    current_time: datetime = Field(default_factory=_utc_now)
    weights: CompositeWeights = Field(default_factory=CompositeWeights)

    @field_validator("current_time")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value


class RankingThresholds(BaseModel):
    """Policy for excluding candidates from a recommendation."""

    min_composite: float = Field(
        default=MIN_COMPOSITE_SCORE, ge=0.0, description="Minimum composite score"
    )
    exclude_problematic_licenses: bool = Field(default=True)
    exclude_deprecated: bool = Field(default=True)


class ScoreRecord(BaseModel):
    """Per-package scores. Immutable once computed."""

    model_config = ConfigDict(frozen=True)

    maintenance: int = Field(default=0, ge=0, le=10)
    popularity: int = Field(default=0, ge=0, le=10)
    quality: int = Field(default=0, ge=0, le=10)
    security: int = Field(default=0, ge=0, le=10)
    composite: float = Field(default=0.0, ge=0.0, description="Not bounded above")

    @classmethod
    def zero(cls) -> "ScoreRecord":
        """Scores attached to a package that could not be fetched."""
        return cls()


class EvaluationResult(BaseModel):
    """Evaluation of a single candidate package.

    Either fully populated, or (on fetch failure) only ``name``, ``error``
    and zeroed ``scores``. Serialized with camelCase keys.
    """

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    name: str
    version: str | None = None
    description: str | None = None
    downloads: int | None = Field(default=None, ge=0)
    last_publish: datetime | None = None
    deprecated: bool | None = None
    license: str | None = None
    license_compatibility: LicenseCompatibility | None = None
    repository: str | None = None
    homepage: str | None = None
    has_types: bool | None = None
    keywords: list[str] | None = None
    maintainers: int | None = Field(default=None, ge=0, description="Maintainer count")
    scores: ScoreRecord = Field(default_factory=ScoreRecord.zero)
    error: str | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None

    def to_output(self) -> dict[str, Any]:
        """Structured output for downstream ranking and presentation."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class RankingReasons:
    """Reason codes attached to excluded candidates."""

    ERROR = "ERROR"
    LOW_SCORE = "LOW_SCORE"
    PROBLEMATIC_LICENSE = "PROBLEMATIC_LICENSE"
    DEPRECATED = "DEPRECATED"


class RankedCandidate(BaseModel):
    """An evaluation placed in presentation order."""

    model_config = ConfigDict(frozen=True)

    rank: int = Field(ge=1)
    evaluation: EvaluationResult
    excluded: bool = False
    reasons: list[str] = Field(default_factory=list)
