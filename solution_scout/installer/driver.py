"""npm / pnpm wrapper for installing a dependency and validating the project."""

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Any, Protocol

from solution_scout.consts import ENV_PACKAGE_MANAGER, INSTALL_TIMEOUT, SCRIPT_TIMEOUT
from solution_scout.models.model_install import (
    AuditResult,
    InstallResult,
    PackageManager,
    ScriptResult,
)

logger = logging.getLogger(__name__)

AUDIT_PARSE_ERROR = "Could not parse audit results"


def resolve_package_manager(explicit: PackageManager | str | None = None) -> PackageManager:
    """Pick the package manager: explicit argument > SCOUT_PACKAGE_MANAGER > npm.

    Raises:
        ValueError: If the chosen value is not a supported manager
    """
    value = explicit or os.getenv(ENV_PACKAGE_MANAGER, "").strip() or PackageManager.NPM
    if isinstance(value, PackageManager):
        return value
    return PackageManager(value.lower())


class PackageManagerDriver(Protocol):
    """Protocol for the tool that mutates and validates a project."""

    manager: PackageManager

    async def install(self, package: str, workspace: str | None = None) -> InstallResult: ...

    async def audit(self) -> AuditResult: ...

    async def run_tests(self) -> ScriptResult: ...

    async def run_lint(self) -> ScriptResult: ...


class NpmDriver:
    """Runs npm or pnpm commands inside a project directory."""

    def __init__(
        self,
        manager: PackageManager | str | None = None,
        project_dir: Path | str | None = None,
        install_timeout: int = INSTALL_TIMEOUT,
        script_timeout: int = SCRIPT_TIMEOUT,
    ):
        """Initialize NpmDriver.

        Args:
            manager: npm or pnpm. None = read from env (SCOUT_PACKAGE_MANAGER), else npm
            project_dir: Project root containing package.json (default: cwd)
            install_timeout: Timeout in seconds for install and audit
            script_timeout: Timeout in seconds for test and lint scripts
        """
        self.manager = resolve_package_manager(manager)
        self.project_dir = Path(project_dir) if project_dir else Path.cwd()
        self.install_timeout = install_timeout
        self.script_timeout = script_timeout

    @property
    def is_pnpm(self) -> bool:
        return self.manager == PackageManager.PNPM

    async def _run(self, cmd: list[str], timeout: int) -> tuple[int, str, str]:
        """Run a command in the project directory.

        Returns:
            (returncode, stdout, stderr)

        Raises:
            TimeoutError: If the command did not finish in time (it is killed)
            OSError: If the executable cannot be started
        """
        logger.debug(f"Running: {' '.join(cmd)}")
        process = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=str(self.project_dir),
        )
        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
        except TimeoutError:
            process.kill()
            await process.wait()
            raise

        return (
            process.returncode,
            stdout.decode("utf-8", errors="replace"),
            stderr.decode("utf-8", errors="replace"),
        )

    def install_command(self, package: str, workspace: str | None = None) -> list[str]:
        if self.is_pnpm:
            cmd = ["pnpm", "add", package]
            if workspace:
                cmd += ["--filter", workspace]
        else:
            cmd = ["npm", "install", package]
            if workspace:
                cmd.append(f"--workspace={workspace}")
        return cmd

    async def install(self, package: str, workspace: str | None = None) -> InstallResult:
        """Add a dependency to the project.

        Args:
            package: Package name (optionally with a version spec)
            workspace: Workspace to add it to, for monorepos

        Returns:
            InstallResult with command output or error
        """
        cmd = self.install_command(package, workspace)
        command = " ".join(cmd)
        logger.info(f"Executing: {command}")

        try:
            returncode, stdout, stderr = await self._run(cmd, self.install_timeout)
        except TimeoutError:
            return InstallResult(
                success=False,
                manager=self.manager,
                command=command,
                error=f"Command timed out after {self.install_timeout}s: {command}",
            )
        except OSError as e:
            return InstallResult(
                success=False, manager=self.manager, command=command, error=str(e)
            )

        if returncode != 0:
            logger.error(f"Install failed with exit code {returncode}")
            return InstallResult(
                success=False,
                manager=self.manager,
                command=command,
                error=f"Command failed: {command}",
                stderr=stderr,
            )

        return InstallResult(success=True, manager=self.manager, command=command, output=stdout)

    async def audit(self) -> AuditResult:
        """Run a security audit of the project's dependency tree.

        The audit exits non-zero when it finds vulnerabilities, so its JSON
        output is parsed regardless of the exit code.
        """
        cmd = [self.manager.value, "audit", "--json"]
        try:
            returncode, stdout, _ = await self._run(cmd, self.install_timeout)
        except (TimeoutError, OSError) as e:
            logger.warning(f"Audit did not run: {e!r}")
            return AuditResult(success=False, error=AUDIT_PARSE_ERROR)

        try:
            report = json.loads(stdout or "{}")
        except json.JSONDecodeError:
            return AuditResult(success=False, error=AUDIT_PARSE_ERROR)
        if not isinstance(report, dict):
            return AuditResult(success=False, error=AUDIT_PARSE_ERROR)

        metadata = report.get("metadata") if isinstance(report.get("metadata"), dict) else {}
        vulnerabilities = metadata.get("vulnerabilities") or report.get("vulnerabilities") or {}
        advisories = report.get("advisories") or []

        return AuditResult(
            success=returncode == 0,
            vulnerabilities=vulnerabilities if isinstance(vulnerabilities, dict) else {},
            advisories=advisories if isinstance(advisories, (list, dict)) else [],
        )

    def _read_scripts(self) -> dict[str, Any] | None:
        """Scripts section of package.json, or None when there is no package.json.

        Raises:
            ValueError: If package.json is not valid JSON
        """
        package_json = self.project_dir / "package.json"
        if not package_json.exists():
            return None
        data = json.loads(package_json.read_text(encoding="utf-8"))
        scripts = data.get("scripts") if isinstance(data, dict) else None
        return scripts if isinstance(scripts, dict) else {}

    async def _run_script(self, script: str, cmd: list[str], label: str) -> ScriptResult:
        note = f"{label} failure does not rollback installation"

        try:
            scripts = self._read_scripts()
        except (OSError, ValueError) as e:
            return ScriptResult(success=False, error=str(e), note=note)

        if scripts is None:
            return ScriptResult.skip("No package.json found")
        if not scripts.get(script):
            return ScriptResult.skip(f"No {script} script defined")

        command = " ".join(cmd)
        try:
            returncode, _, stderr = await self._run(cmd, self.script_timeout)
        except TimeoutError:
            return ScriptResult(
                success=False,
                error=f"Command timed out after {self.script_timeout}s: {command}",
                note=note,
            )
        except OSError as e:
            return ScriptResult(success=False, error=str(e), note=note)

        if returncode != 0:
            error = f"Command failed: {command}"
            if stderr.strip():
                error = f"{error}\n{stderr.strip()[-2000:]}"
            return ScriptResult(success=False, error=error, note=note)

        return ScriptResult(success=True)

    async def run_tests(self) -> ScriptResult:
        """Run the project's test script, if one is defined."""
        cmd = ["pnpm", "test"] if self.is_pnpm else ["npm", "test"]
        return await self._run_script("test", cmd, "Test")

    async def run_lint(self) -> ScriptResult:
        """Run the project's lint script, if one is defined."""
        cmd = ["pnpm", "lint"] if self.is_pnpm else ["npm", "run", "lint"]
        return await self._run_script("lint", cmd, "Lint")
