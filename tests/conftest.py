"""Pytest configuration and fixtures."""

from datetime import UTC, datetime
from typing import Any

import pytest

from solution_scout.models.model_eval import ScoringContext
from solution_scout.models.model_package import PackageMetadata
from solution_scout.models.model_search import SearchResponse
from solution_scout.registry.base import PackageNotFoundError


def _version_times(count: int) -> dict[str, str]:
    return {f"1.{i}.0": f"2020-01-{i + 1:02d}T00:00:00.000Z" for i in range(count)}


@pytest.fixture
def current_time() -> datetime:
    """Frozen reference time so recency scoring is reproducible."""
    return datetime(2025, 1, 1, tzinfo=UTC)


@pytest.fixture
def sample_package() -> PackageMetadata:
    """A healthy, well-documented package published a month before current_time."""
    return PackageMetadata(
        name="fast-widget",
        version="1.11.0",
        description="Render widgets fast",
        license="MIT",
        time={
            "created": "2015-01-01T00:00:00.000Z",
            "modified": "2024-12-01T00:00:00.000Z",
            **_version_times(12),
        },
        repository={"type": "git", "url": "git+https://github.com/example/fast-widget.git"},
        homepage="https://fast-widget.dev",
        keywords=["widget", "render"],
        maintainers=[{"name": "alice"}, {"name": "bob"}],
        types="index.d.ts",
    )


@pytest.fixture
def bare_package() -> PackageMetadata:
    """A package with nothing but a name."""
    return PackageMetadata(name="bare")


@pytest.fixture
def sample_context(current_time) -> ScoringContext:
    """Scoring context with 2M weekly downloads."""
    return ScoringContext(downloads=2_000_000, current_time=current_time)


@pytest.fixture
def registry_document() -> dict[str, Any]:
    """Raw registry document, as served by GET /<name>."""
    return {
        "_id": "fast-widget",
        "name": "fast-widget",
        "description": "Render widgets fast",
        "dist-tags": {"latest": "1.11.0"},
        "license": "MIT",
        "homepage": "https://fast-widget.dev",
        "keywords": ["widget", "render"],
        "repository": {"type": "git", "url": "git+https://github.com/example/fast-widget.git"},
        "maintainers": [{"name": "alice", "email": "alice@example.com"}],
        "time": {
            "created": "2015-01-01T00:00:00.000Z",
            "modified": "2024-12-01T00:00:00.000Z",
            "1.10.0": "2024-06-01T00:00:00.000Z",
            "1.11.0": "2024-12-01T00:00:00.000Z",
        },
        "versions": {
            "1.10.0": {"name": "fast-widget", "version": "1.10.0"},
            "1.11.0": {
                "name": "fast-widget",
                "version": "1.11.0",
                "types": "index.d.ts",
                "deprecated": "Use fast-widget-ng instead",
            },
        },
    }


class FakeRegistryClient:
    """In-memory registry client.

    Names missing from ``packages`` raise PackageNotFoundError. Values in
    ``errors`` are raised instead of returning metadata.
    """

    def __init__(
        self,
        packages: dict[str, PackageMetadata] | None = None,
        downloads: dict[str, int] | None = None,
        errors: dict[str, Exception] | None = None,
        search_response: SearchResponse | None = None,
    ):
        self.packages = packages or {}
        self.downloads = downloads or {}
        self.errors = errors or {}
        self.search_response = search_response or SearchResponse(success=True)
        self.metadata_calls: list[str] = []
        self.search_calls: list[tuple[str, int]] = []

    async def fetch_metadata(self, name: str) -> PackageMetadata:
        self.metadata_calls.append(name)
        if name in self.errors:
            raise self.errors[name]
        if name not in self.packages:
            raise PackageNotFoundError(f"Package not found: {name}")
        return self.packages[name]

    async def fetch_weekly_downloads(self, name: str) -> int:
        return self.downloads.get(name, 0)

    async def search(self, query: str, limit: int = 20) -> SearchResponse:
        self.search_calls.append((query, limit))
        return self.search_response


@pytest.fixture
def fake_client(sample_package) -> FakeRegistryClient:
    """Registry client knowing fast-widget and a minimal package."""
    return FakeRegistryClient(
        packages={
            "fast-widget": sample_package,
            "tiny-lib": PackageMetadata(name="tiny-lib", license="ISC"),
        },
        downloads={"fast-widget": 2_000_000, "tiny-lib": 50},
    )


@pytest.fixture
def make_client():
    """Factory for FakeRegistryClient with custom contents."""
    return FakeRegistryClient
