"""Pipeline orchestration for the search, evaluate and install workflows.

Each workflow has an async implementation taking injectable collaborators,
and a synchronous wrapper used by the CLI:
1. Search: query the registry for candidate packages
2. Evaluate: fetch and score candidates, then rank them for presentation
3. Install: verify, install, audit, test and lint a chosen package
"""

import asyncio
import logging
from datetime import UTC, datetime
from pathlib import Path

from solution_scout.consts import EVALUATION_CONCURRENCY, SEARCH_DEFAULT_LIMIT
from solution_scout.evaluators.candidate_evaluator import CandidateEvaluator
from solution_scout.evaluators.registry import EvaluatorRegistry
from solution_scout.installer.driver import NpmDriver, PackageManagerDriver
from solution_scout.models.model_eval import CompositeWeights, EvaluationResult
from solution_scout.models.model_install import InstallReport, PackageManager
from solution_scout.models.model_search import SearchResponse
from solution_scout.registry.base import PackageNotFoundError, RegistryClient, RegistryError
from solution_scout.registry.npm_registry import NpmRegistryClient

logger = logging.getLogger(__name__)


def bare_package_name(spec: str) -> str:
    """Strip a version range from an install spec ("react@^18" -> "react")."""
    if spec.startswith("@"):
        scope_end = spec.find("/")
        version_at = spec.find("@", scope_end + 1) if scope_end != -1 else -1
    else:
        version_at = spec.find("@")
    return spec[:version_at] if version_at > 0 else spec


async def search_packages(
    query: str,
    limit: int = SEARCH_DEFAULT_LIMIT,
    client: RegistryClient | None = None,
) -> SearchResponse:
    """Search the registry for candidate packages."""
    if client is not None:
        return await client.search(query, limit)
    async with NpmRegistryClient() as npm_client:
        return await npm_client.search(query, limit)


def run_search(query: str, limit: int = SEARCH_DEFAULT_LIMIT) -> SearchResponse:
    """Synchronous entry point for searching."""
    logger.info(f"Searching npm for '{query}' (limit {limit})")
    response = asyncio.run(search_packages(query, limit))
    if response.success:
        logger.info(f"Found {response.count} packages via {response.method.value}")
    return response


async def evaluate_candidates(
    names: list[str],
    client: RegistryClient | None = None,
    concurrency: int = EVALUATION_CONCURRENCY,
    weights: CompositeWeights | None = None,
    current_time: datetime | None = None,
) -> list[EvaluationResult]:
    """Evaluate candidate packages, one result per name in input order.

    Raises:
        ValueError: If names is empty
    """
    if not names:
        raise ValueError("At least one package name is required")

    registry = EvaluatorRegistry(weights=weights)
    if client is not None:
        evaluator = CandidateEvaluator(client, registry, concurrency=concurrency)
        return await evaluator.evaluate_batch(names, current_time)

    async with NpmRegistryClient() as npm_client:
        evaluator = CandidateEvaluator(npm_client, registry, concurrency=concurrency)
        return await evaluator.evaluate_batch(names, current_time)


def run_evaluation(
    names: list[str],
    concurrency: int = EVALUATION_CONCURRENCY,
    weights: CompositeWeights | None = None,
) -> list[EvaluationResult]:
    """Synchronous entry point for evaluating candidates.

    Raises:
        ValueError: If names is empty
    """
    logger.info(f"Evaluating {len(names)} candidates")
    start_time = datetime.now(UTC)

    results = asyncio.run(
        evaluate_candidates(names, concurrency=concurrency, weights=weights, current_time=start_time)
    )

    duration = (datetime.now(UTC) - start_time).total_seconds()
    logger.info(f"Evaluation complete in {duration:.1f}s")
    return results


async def run_install_pipeline(
    package: str,
    workspace: str | None = None,
    client: RegistryClient | None = None,
    driver: PackageManagerDriver | None = None,
) -> InstallReport:
    """Verify, install and validate a package.

    Steps:
    1. Verify the package exists (nothing is installed otherwise)
    2. Record a deprecation warning, if any
    3. Install (stop on failure)
    4. Audit, tests and lint; their failures never roll back the install
    """
    driver = driver or NpmDriver()
    report = InstallReport(package=package)

    logger.info("Step 1/4: Verifying package exists...")
    lookup_name = bare_package_name(package)
    try:
        if client is not None:
            metadata = await client.fetch_metadata(lookup_name)
        else:
            async with NpmRegistryClient() as npm_client:
                metadata = await npm_client.fetch_metadata(lookup_name)
    except PackageNotFoundError:
        report.error = f'Package "{lookup_name}" not found in npm registry'
        logger.error(report.error)
        return report
    except RegistryError as e:
        report.error = f"Could not verify package {lookup_name}: {e}"
        logger.error(report.error)
        return report

    logger.info("Step 2/4: Checking for deprecation...")
    if metadata.is_deprecated:
        warning = f"Package is deprecated: {metadata.deprecated}"
        report.warnings.append(warning)
        logger.warning(warning)

    logger.info(f"Step 3/4: Installing with {driver.manager.value}...")
    report.installation = await driver.install(package, workspace)
    if not report.installation.success:
        report.error = "Installation failed"
        logger.error(f"{report.error}: {report.installation.error}")
        return report

    logger.info("Step 4/4: Running audit, tests and lint...")
    report.audit = await driver.audit()
    report.tests = await driver.run_tests()
    report.lint = await driver.run_lint()

    logger.info(f"Installed {package}")
    return report


def run_install(
    package: str,
    workspace: str | None = None,
    manager: PackageManager | str | None = None,
    project_dir: Path | None = None,
) -> InstallReport:
    """Synchronous entry point for installing a package.

    Raises:
        ValueError: If manager is not a supported package manager
    """
    driver = NpmDriver(manager=manager, project_dir=project_dir)
    return asyncio.run(run_install_pipeline(package, workspace, driver=driver))
