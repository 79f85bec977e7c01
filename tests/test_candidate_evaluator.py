"""Tests for batch candidate evaluation."""

import asyncio

import pytest

from solution_scout.evaluators.candidate_evaluator import CandidateEvaluator
from solution_scout.models.model_eval import LicenseCompatibility, ScoreRecord
from solution_scout.models.model_package import PackageMetadata
from solution_scout.registry.base import RegistryError


class TestCandidateEvaluator:
    """Tests for CandidateEvaluator."""

    @pytest.mark.asyncio
    async def test_results_in_input_order(self, fake_client, current_time) -> None:
        """Results follow input order, not score order."""
        evaluator = CandidateEvaluator(fake_client)

        results = await evaluator.evaluate_batch(["tiny-lib", "fast-widget"], current_time)

        assert [r.name for r in results] == ["tiny-lib", "fast-widget"]
        assert results[0].scores.composite < results[1].scores.composite

    @pytest.mark.asyncio
    async def test_missing_package_does_not_abort_batch(self, fake_client, current_time) -> None:
        """N names with one missing give N records, one of them an error."""
        evaluator = CandidateEvaluator(fake_client)

        results = await evaluator.evaluate_batch(
            ["fast-widget", "does-not-exist", "tiny-lib"], current_time
        )

        assert len(results) == 3
        missing = results[1]
        assert missing.name == "does-not-exist"
        assert missing.failed
        assert "does-not-exist" in missing.error
        assert missing.scores == ScoreRecord.zero()
        assert missing.license is None

        for result in (results[0], results[2]):
            assert not result.failed
            assert result.scores.composite > 0
            assert result.license_compatibility == LicenseCompatibility.COMPATIBLE

    @pytest.mark.asyncio
    async def test_scores_match_expected(self, fake_client, current_time) -> None:
        """Scores come from the evaluator registry with the batch reference time."""
        evaluator = CandidateEvaluator(fake_client)

        widget, tiny = await evaluator.evaluate_batch(["fast-widget", "tiny-lib"], current_time)

        assert widget.scores == ScoreRecord(
            maintenance=5, popularity=8, quality=7, security=10, composite=8.1
        )
        assert widget.downloads == 2_000_000
        # No history, no metadata, 50 downloads: 10*0.20 + 1*0.10 + 3.0
        assert tiny.scores == ScoreRecord(
            maintenance=0, popularity=1, quality=0, security=10, composite=5.1
        )

    @pytest.mark.asyncio
    async def test_registry_errors_become_error_records(self, make_client, current_time) -> None:
        """Any fetch failure is captured, including unexpected exceptions."""
        client = make_client(
            errors={
                "offline": RegistryError("Failed to fetch info for offline: connection refused"),
                "broken": RuntimeError("boom"),
            }
        )
        evaluator = CandidateEvaluator(client)

        results = await evaluator.evaluate_batch(["offline", "broken"], current_time)

        assert results[0].error == "Failed to fetch info for offline: connection refused"
        assert results[1].error == "boom"
        assert all(r.scores.composite == 0.0 for r in results)

    @pytest.mark.asyncio
    async def test_download_failure_defaults_to_zero(self, make_client, current_time) -> None:
        """A download lookup that raises scores as 0 downloads."""
        client = make_client(packages={"pkg": PackageMetadata(name="pkg")})

        async def failing_downloads(name: str) -> int:
            raise ConnectionError("downloads API down")

        client.fetch_weekly_downloads = failing_downloads
        evaluator = CandidateEvaluator(client)

        (result,) = await evaluator.evaluate_batch(["pkg"], current_time)

        assert not result.failed
        assert result.downloads == 0
        assert result.scores.popularity == 1

    @pytest.mark.asyncio
    async def test_records_keep_requested_name(self, make_client, current_time) -> None:
        """Records are named after the request even when the registry renames it."""
        client = make_client(packages={"alias": PackageMetadata(name="canonical")})
        evaluator = CandidateEvaluator(client)

        results = await evaluator.evaluate_batch(["alias", "missing"], current_time)

        assert [r.name for r in results] == ["alias", "missing"]
        assert not results[0].failed
        assert results[1].failed

    @pytest.mark.asyncio
    async def test_empty_batch_rejected(self, fake_client) -> None:
        """Zero names is a usage error."""
        evaluator = CandidateEvaluator(fake_client)

        with pytest.raises(ValueError, match="At least one package name is required"):
            await evaluator.evaluate_batch([])

    @pytest.mark.asyncio
    async def test_concurrency_is_bounded(self, make_client, current_time) -> None:
        """No more than `concurrency` fetches run at once."""
        client = make_client(packages={f"pkg-{i}": PackageMetadata(name=f"pkg-{i}") for i in range(8)})
        in_flight = 0
        peak = 0
        original_fetch = client.fetch_metadata

        async def slow_fetch(name: str) -> PackageMetadata:
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1
            return await original_fetch(name)

        client.fetch_metadata = slow_fetch
        evaluator = CandidateEvaluator(client, concurrency=3)

        results = await evaluator.evaluate_batch([f"pkg-{i}" for i in range(8)], current_time)

        assert len(results) == 8
        assert 1 < peak <= 3

    @pytest.mark.asyncio
    async def test_progress_callback(self, fake_client, current_time) -> None:
        """Progress is reported once per package."""
        calls = []
        evaluator = CandidateEvaluator(fake_client)

        await evaluator.evaluate_batch(
            ["fast-widget", "tiny-lib", "ghost"],
            current_time,
            progress_callback=lambda current, total: calls.append((current, total)),
        )

        assert sorted(calls) == [(1, 3), (2, 3), (3, 3)]

    @pytest.mark.asyncio
    async def test_batch_is_idempotent(self, fake_client, current_time) -> None:
        """Same inputs and reference time give identical results."""
        evaluator = CandidateEvaluator(fake_client)

        first = await evaluator.evaluate_batch(["fast-widget", "tiny-lib"], current_time)
        second = await evaluator.evaluate_batch(["fast-widget", "tiny-lib"], current_time)

        assert first == second
