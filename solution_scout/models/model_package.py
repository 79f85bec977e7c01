"""Registry metadata models for npm packages."""

import contextlib
import re
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from solution_scout.consts import SYNTHETIC_TIME_KEYS

EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


def _parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 registry timestamp, returning None when unusable."""
    if not isinstance(value, str) or not value:
        return None
    with contextlib.suppress(ValueError, TypeError):
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=UTC)
        return parsed
    return None


class PackageMetadata(BaseModel):
    """Package document as returned by the registry.

    Only ``name`` is required. Every other field is optional and normalizes
    to a safe default when missing or malformed, so scoring never has to
    probe shapes.
    """

    model_config = ConfigDict(extra="ignore")

    name: str = Field(min_length=1, description="Package name, possibly scoped")
    version: str | None = Field(default=None, description="Latest published version")
    description: str | None = Field(default=None)

    # License may be "MIT", {"type": "MIT"} or a list of either
    license: str | dict[str, Any] | list[Any] | None = Field(default=None)
    licenses: list[Any] | None = Field(default=None, description="Legacy license list")

    deprecated: str | None = Field(default=None, description="Deprecation message")
    time: dict[str, str] = Field(
        default_factory=dict,
        description="Version -> publish time, plus 'created' and 'modified'",
    )

    repository: str | dict[str, Any] | None = Field(default=None)
    homepage: str | None = Field(default=None)
    keywords: list[str] = Field(default_factory=list)
    maintainers: list[Any] = Field(default_factory=list)

    # Type declarations
    types: str | None = Field(default=None)
    typings: str | None = Field(default=None)

    @field_validator("deprecated", mode="before")
    @classmethod
    def _normalize_deprecated(cls, value: Any) -> str | None:
        if value is None or value is False:
            return None
        if value is True:
            return "deprecated"
        text = str(value).strip()
        return text or None

    @field_validator("time", mode="before")
    @classmethod
    def _normalize_time(cls, value: Any) -> dict[str, str]:
        if not isinstance(value, dict):
            return {}
        return {str(k): v for k, v in value.items() if isinstance(v, str)}

    @field_validator("keywords", mode="before")
    @classmethod
    def _normalize_keywords(cls, value: Any) -> list[str]:
        if isinstance(value, str):
            # Some old packages publish a comma/space separated string
            return [k for k in re.split(r"[,\s]+", value) if k]
        if not isinstance(value, list):
            return []
        return [str(k) for k in value if k]

    @field_validator("maintainers", mode="before")
    @classmethod
    def _normalize_maintainers(cls, value: Any) -> list[Any]:
        return value if isinstance(value, list) else []

    @field_validator("licenses", mode="before")
    @classmethod
    def _normalize_licenses(cls, value: Any) -> list[Any] | None:
        return value if isinstance(value, list) else None

    @field_validator("license", mode="before")
    @classmethod
    def _normalize_license(cls, value: Any) -> Any:
        if isinstance(value, (str, dict, list)):
            return value
        return None

    @field_validator("repository", mode="before")
    @classmethod
    def _normalize_repository(cls, value: Any) -> Any:
        if isinstance(value, (str, dict)) and value:
            return value
        return None

    @field_validator("types", "typings", mode="before")
    @classmethod
    def _normalize_type_entry(cls, value: Any) -> str | None:
        # Any truthy non-string (true, a list of entry points) still declares types
        if not value:
            return None
        if isinstance(value, str):
            return value
        return "true"

    @field_validator("version", "description", "homepage", mode="before")
    @classmethod
    def _normalize_optional_text(cls, value: Any) -> str | None:
        if value is None or isinstance(value, (dict, list, bool)):
            return None
        text = str(value)
        return text or None

    @property
    def has_types(self) -> bool:
        """Whether the package bundles its own type declarations."""
        return bool(self.types or self.typings)

    @property
    def is_deprecated(self) -> bool:
        return self.deprecated is not None

    @property
    def repository_url(self) -> str | None:
        """Repository URL regardless of string or {url} shape."""
        if isinstance(self.repository, str):
            return self.repository
        if isinstance(self.repository, dict):
            url = self.repository.get("url")
            if isinstance(url, str) and url:
                return url
        return None

    @property
    def release_count(self) -> int:
        """Number of published versions, excluding the synthetic time keys."""
        return len([key for key in self.time if key not in SYNTHETIC_TIME_KEYS])

    def published_at(self) -> datetime | None:
        """Later of the 'modified' and 'created' timestamps, if any parse."""
        candidates = [
            parsed
            for parsed in (
                _parse_timestamp(self.time.get("modified")),
                _parse_timestamp(self.time.get("created")),
            )
            if parsed is not None
        ]
        return max(candidates) if candidates else None

    def last_publish(self) -> datetime:
        """Like published_at(), but the Unix epoch when unknown.

        The epoch makes a package with no publish history look infinitely
        stale.
        """
        return self.published_at() or EPOCH
