"""Registry clients for fetching package metadata and download counts."""

from solution_scout.registry.base import PackageNotFoundError, RegistryClient, RegistryError
from solution_scout.registry.npm_registry import NpmRegistryClient
from solution_scout.registry.rate_limiter import RateLimiter

__all__ = [
    "NpmRegistryClient",
    "PackageNotFoundError",
    "RateLimiter",
    "RegistryClient",
    "RegistryError",
]
