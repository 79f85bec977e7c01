"""Registry client contract and errors."""

from typing import Protocol

from solution_scout.models.model_package import PackageMetadata
from solution_scout.models.model_search import SearchResponse


class RegistryError(Exception):
    """Raised when a registry request fails."""


class PackageNotFoundError(RegistryError):
    """Raised when a package name does not resolve in the registry."""


class RegistryClient(Protocol):
    """Protocol for package registry access.

    ``fetch_metadata`` may raise RegistryError. ``fetch_weekly_downloads``
    never raises: any failure is reported as 0 downloads.
    """

    async def fetch_metadata(self, name: str) -> PackageMetadata:
        """Fetch the full metadata document for a package."""
        ...

    async def fetch_weekly_downloads(self, name: str) -> int:
        """Fetch downloads over the last week (0 when unavailable)."""
        ...

    async def search(self, query: str, limit: int = 20) -> SearchResponse:
        """Search packages by free text."""
        ...
