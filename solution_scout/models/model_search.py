"""Models for registry search results."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator


class SearchMethod(str, Enum):
    """How the search results were obtained."""

    CLI = "cli"
    HTTP = "http"


class SearchHit(BaseModel):
    """A single package returned by a registry search."""

    name: str
    version: str | None = None
    description: str | None = None
    author: dict[str, Any] | str | None = None
    date: str | None = None
    keywords: list[str] = Field(default_factory=list)
    links: dict[str, Any] = Field(default_factory=dict)
    publisher: dict[str, Any] = Field(default_factory=dict)
    maintainers: list[Any] = Field(default_factory=list)
    score: dict[str, Any] | None = Field(default=None, description="Registry search score (HTTP only)")

    @field_validator("keywords", "maintainers", mode="before")
    @classmethod
    def _default_list(cls, value: Any) -> list[Any]:
        return value if isinstance(value, list) else []

    @field_validator("links", "publisher", mode="before")
    @classmethod
    def _default_dict(cls, value: Any) -> dict[str, Any]:
        return value if isinstance(value, dict) else {}


class SearchResponse(BaseModel):
    """Outcome of a search, successful or not."""

    success: bool
    method: SearchMethod | None = None
    results: list[SearchHit] = Field(default_factory=list)
    count: int = Field(default=0, ge=0)
    error: str | None = None
