"""Data models for installation and post-install validation."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class PackageManager(str, Enum):
    """Supported package managers."""

    NPM = "npm"
    PNPM = "pnpm"


class InstallResult(BaseModel):
    """Result of adding a dependency."""

    success: bool
    manager: PackageManager
    command: str
    output: str | None = None
    error: str | None = None
    stderr: str | None = None


class AuditResult(BaseModel):
    """Result of a security audit.

    ``success`` is False when the audit reported vulnerabilities or could not
    be parsed. ``error`` is only set in the latter case.
    """

    success: bool
    vulnerabilities: dict[str, Any] = Field(default_factory=dict)
    advisories: list[Any] | dict[str, Any] = Field(default_factory=list)
    error: str | None = None


class ScriptResult(BaseModel):
    """Result of running a project script such as ``test`` or ``lint``."""

    success: bool | None = None
    skipped: bool | None = None
    reason: str | None = None
    error: str | None = None
    note: str | None = None

    @classmethod
    def skip(cls, reason: str) -> "ScriptResult":
        return cls(skipped=True, reason=reason)


class InstallReport(BaseModel):
    """Everything that happened during an install run."""

    package: str
    installation: InstallResult | None = None
    audit: AuditResult | None = None
    tests: ScriptResult | None = None
    lint: ScriptResult | None = None
    warnings: list[str] = Field(default_factory=list)
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        """Installation went through. Audit, test and lint results are informational."""
        return self.error is None and self.installation is not None and self.installation.success

    def to_output(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)
