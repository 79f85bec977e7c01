"""Batch evaluation of candidate packages with bounded concurrency."""

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime

from solution_scout.consts import EVALUATION_CONCURRENCY, EVALUATION_RECOMMENDED_MAX
from solution_scout.evaluators.registry import EvaluatorRegistry
from solution_scout.models.common import _utc_now
from solution_scout.models.model_eval import EvaluationResult
from solution_scout.registry.base import RegistryClient

logger = logging.getLogger(__name__)


class CandidateEvaluator:
    """Fetches and scores a list of candidate packages.

    Every name yields exactly one EvaluationResult, in input order. A fetch
    failure becomes an error-shaped result and never aborts the batch.
    """

    def __init__(
        self,
        registry_client: RegistryClient,
        evaluator_registry: EvaluatorRegistry | None = None,
        concurrency: int = EVALUATION_CONCURRENCY,
    ):
        """Initialize CandidateEvaluator.

        Args:
            registry_client: Source of metadata and download counts
            evaluator_registry: Scoring registry (default weights if None)
            concurrency: Maximum packages fetched in parallel
        """
        self.registry_client = registry_client
        self.evaluator_registry = evaluator_registry or EvaluatorRegistry()
        self.concurrency = max(1, concurrency)

    async def _fetch_downloads(self, name: str) -> int:
        try:
            downloads = await self.registry_client.fetch_weekly_downloads(name)
        except Exception as e:
            logger.debug(f"Download count for {name} unavailable: {e}")
            return 0
        return downloads if isinstance(downloads, int) and downloads > 0 else 0

    async def evaluate_one(self, name: str, current_time: datetime) -> EvaluationResult:
        """Fetch and score a single package.

        Never raises: any failure is returned as an error-shaped result.
        """
        try:
            package = await self.registry_client.fetch_metadata(name)
        except Exception as e:
            logger.warning(f"Failed to evaluate {name}: {e}")
            return EvaluatorRegistry.failed_evaluation(name, str(e) or type(e).__name__)

        downloads = await self._fetch_downloads(name)
        return self.evaluator_registry.evaluate_package(
            package, downloads, current_time, name=name
        )

    async def evaluate_batch(
        self,
        names: list[str],
        current_time: datetime | None = None,
        progress_callback: Callable[[int, int], None] | None = None,
    ) -> list[EvaluationResult]:
        """Evaluate candidates concurrently.

        Args:
            names: Candidate package names, in the order results are wanted
            current_time: Reference time for recency scoring (one per batch)
            progress_callback: Optional callback for progress updates (current, total)

        Returns:
            One EvaluationResult per name, in input order

        Raises:
            ValueError: If names is empty
        """
        if not names:
            raise ValueError("At least one package name is required")

        if len(names) > EVALUATION_RECOMMENDED_MAX:
            logger.info(
                f"Evaluating {len(names)} candidates (more than the usual {EVALUATION_RECOMMENDED_MAX})"
            )

        reference_time = current_time or _utc_now()
        semaphore = asyncio.Semaphore(self.concurrency)
        total = len(names)
        completed = 0

        async def evaluate_with_limit(name: str) -> EvaluationResult:
            nonlocal completed
            async with semaphore:
                result = await self.evaluate_one(name, reference_time)
            completed += 1
            if progress_callback:
                progress_callback(completed, total)
            return result

        results = await asyncio.gather(*(evaluate_with_limit(name) for name in names))

        failed = sum(1 for result in results if result.failed)
        logger.info(f"Evaluated {total} candidates ({total - failed} succeeded, {failed} failed)")
        return list(results)
