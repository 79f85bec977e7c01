"""Package manager drivers for installing and validating dependencies."""

from solution_scout.installer.driver import NpmDriver, PackageManagerDriver, resolve_package_manager

__all__ = [
    "NpmDriver",
    "PackageManagerDriver",
    "resolve_package_manager",
]
