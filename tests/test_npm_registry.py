"""Tests for the npm registry client."""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from solution_scout.models.model_search import SearchMethod
from solution_scout.registry.base import PackageNotFoundError, RegistryError
from solution_scout.registry.npm_registry import NpmRegistryClient, _flatten_document
from solution_scout.registry.rate_limiter import RateLimiter

REGISTRY = "https://registry.test"
DOWNLOADS = "https://downloads.test/point/last-week"


def _client(handler, **kwargs) -> NpmRegistryClient:
    kwargs.setdefault("prefer_cli_search", False)
    return NpmRegistryClient(
        registry_url=REGISTRY,
        downloads_url=DOWNLOADS,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        **kwargs,
    )


def _mock_process(stdout: bytes, returncode: int = 0, stderr: bytes = b"") -> MagicMock:
    process = MagicMock()
    process.returncode = returncode
    process.communicate = AsyncMock(return_value=(stdout, stderr))
    process.wait = AsyncMock()
    return process


class TestRateLimiter:
    """Tests for the RateLimiter class."""

    def test_backoff_increases_delay(self) -> None:
        limiter = RateLimiter(initial_delay=1.0, backoff_factor=2.0, jitter_factor=0.0)
        assert limiter.backoff() == 2.0
        assert limiter.backoff() == 4.0
        assert limiter.backoff() == 8.0

    def test_backoff_respects_max_delay(self) -> None:
        limiter = RateLimiter(initial_delay=1.0, max_delay=5.0, jitter_factor=0.0, max_retries=10)
        for _ in range(10):
            limiter.backoff()
        assert limiter._current_delay == 5.0

    def test_exhausted_after_max_retries(self) -> None:
        limiter = RateLimiter(max_retries=2)
        assert not limiter.exhausted
        limiter.backoff()
        limiter.backoff()
        assert limiter.exhausted


class TestFetchMetadata:
    """Tests for package document retrieval."""

    @pytest.mark.asyncio
    async def test_flattens_latest_version(self, registry_document) -> None:
        """Version-level fields of dist-tags.latest are visible on the metadata."""
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json=registry_document)

        async with _client(handler) as client:
            package = await client.fetch_metadata("fast-widget")

        assert requests[0].url == httpx.URL(f"{REGISTRY}/fast-widget")
        assert package.name == "fast-widget"
        assert package.version == "1.11.0"
        assert package.has_types
        assert package.deprecated == "Use fast-widget-ng instead"
        assert package.release_count == 2
        assert package.repository_url == "git+https://github.com/example/fast-widget.git"

    @pytest.mark.asyncio
    async def test_scoped_name_is_escaped(self) -> None:
        """Scoped names keep the scope slash escaped in the path."""
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.url.raw_path)
            return httpx.Response(200, json={"name": "@types/node", "dist-tags": {}})

        async with _client(handler) as client:
            package = await client.fetch_metadata("@types/node")

        assert seen == [b"/@types%2Fnode"]
        assert package.name == "@types/node"

    @pytest.mark.asyncio
    async def test_not_found(self) -> None:
        """404 raises PackageNotFoundError."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, json={"error": "Not found"})

        async with _client(handler) as client:
            with pytest.raises(PackageNotFoundError, match="Package not found: ghost"):
                await client.fetch_metadata("ghost")

    @pytest.mark.asyncio
    async def test_retries_server_errors(self, registry_document) -> None:
        """5xx responses are retried with backoff."""
        responses = iter(
            [
                httpx.Response(503),
                httpx.Response(429),
                httpx.Response(200, json=registry_document),
            ]
        )

        def handler(request: httpx.Request) -> httpx.Response:
            return next(responses)

        with patch("asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            async with _client(handler) as client:
                package = await client.fetch_metadata("fast-widget")

        assert package.name == "fast-widget"
        assert mock_sleep.await_count == 2

    @pytest.mark.asyncio
    async def test_gives_up_after_max_retries(self) -> None:
        """Persistent server errors surface as RegistryError."""
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            return httpx.Response(502)

        with patch("asyncio.sleep", new_callable=AsyncMock):
            async with _client(handler, max_retries=3) as client:
                with pytest.raises(RegistryError, match="HTTP 502"):
                    await client.fetch_metadata("flaky")

        assert calls == 4

    @pytest.mark.asyncio
    async def test_transport_error(self) -> None:
        """Connection failures surface as RegistryError."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with _client(handler) as client:
            with pytest.raises(RegistryError, match="connection refused"):
                await client.fetch_metadata("pkg")

    @pytest.mark.asyncio
    async def test_malformed_response(self) -> None:
        """Non-JSON and non-object bodies are rejected."""
        bodies = iter([httpx.Response(200, content=b"<html>"), httpx.Response(200, json=["pkg"])])

        def handler(request: httpx.Request) -> httpx.Response:
            return next(bodies)

        async with _client(handler) as client:
            with pytest.raises(RegistryError):
                await client.fetch_metadata("pkg")
            with pytest.raises(RegistryError):
                await client.fetch_metadata("pkg")

    def test_flatten_uses_requested_name_when_missing(self) -> None:
        """A document without a name gets the requested one."""
        flattened = _flatten_document({"dist-tags": {"latest": "2.0.0"}}, "pkg")

        assert flattened["name"] == "pkg"
        assert flattened["version"] == "2.0.0"


class TestWeeklyDownloads:
    """Tests for download statistics."""

    @pytest.mark.asyncio
    async def test_downloads(self) -> None:
        """The downloads count is read from the point endpoint."""
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(str(request.url))
            return httpx.Response(200, json={"downloads": 1234, "package": "pkg"})

        async with _client(handler) as client:
            assert await client.fetch_weekly_downloads("pkg") == 1234

        assert seen == [f"{DOWNLOADS}/pkg"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(404, json={"error": "package pkg not found"}),
            httpx.Response(200, json={"downloads": -3}),
            httpx.Response(200, json={"downloads": "many"}),
            httpx.Response(200, json={}),
            httpx.Response(200, content=b"not json"),
        ],
    )
    async def test_unavailable_downloads_are_zero(self, response) -> None:
        """Every failure path yields 0."""

        def handler(request: httpx.Request) -> httpx.Response:
            return response

        async with _client(handler) as client:
            assert await client.fetch_weekly_downloads("pkg") == 0

    @pytest.mark.asyncio
    async def test_network_error_is_zero(self) -> None:
        """Network errors yield 0."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        async with _client(handler) as client:
            assert await client.fetch_weekly_downloads("pkg") == 0


class TestSearch:
    """Tests for search with CLI and HTTP strategies."""

    @pytest.fixture
    def http_search_body(self) -> dict:
        return {
            "objects": [
                {
                    "package": {
                        "name": "fast-widget",
                        "version": "1.11.0",
                        "description": "Render widgets fast",
                        "keywords": ["widget"],
                        "date": "2024-12-01T00:00:00.000Z",
                        "links": {"npm": "https://www.npmjs.com/package/fast-widget"},
                        "publisher": {"username": "alice"},
                        "maintainers": [{"username": "alice"}],
                    },
                    "score": {"final": 0.9},
                },
                {"package": {"description": "nameless"}},
                "garbage",
            ],
            "total": 2,
        }

    @pytest.mark.asyncio
    async def test_http_search(self, http_search_body) -> None:
        """HTTP search maps package objects to hits and skips malformed ones."""
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.url)
            return httpx.Response(200, json=http_search_body)

        async with _client(handler) as client:
            response = await client.search("widgets", limit=5)

        assert response.success
        assert response.method == SearchMethod.HTTP
        assert response.count == 1
        assert response.results[0].name == "fast-widget"
        assert response.results[0].score == {"final": 0.9}
        assert seen[0].path == "/-/v1/search"
        assert seen[0].params["text"] == "widgets"
        assert seen[0].params["size"] == "5"

    @pytest.mark.asyncio
    async def test_invalid_limit_uses_default(self, http_search_body) -> None:
        """A limit below 1 falls back to 20."""
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.url)
            return httpx.Response(200, json=http_search_body)

        async with _client(handler) as client:
            await client.search("widgets", limit=0)

        assert seen[0].params["size"] == "20"

    @pytest.mark.asyncio
    async def test_cli_search_preferred(self) -> None:
        """The npm CLI is used when available."""
        cli_output = json.dumps(
            [{"name": "fast-widget", "version": "1.11.0", "keywords": ["widget"], "date": "2024-12-01"}]
        ).encode()

        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("HTTP search should not be used")

        process = _mock_process(cli_output)
        with (
            patch("solution_scout.registry.npm_registry.shutil.which", return_value="/usr/bin/npm"),
            patch("asyncio.create_subprocess_exec", new_callable=AsyncMock, return_value=process) as mock_exec,
        ):
            async with _client(handler, prefer_cli_search=True) as client:
                response = await client.search("widgets", limit=3)

        assert response.success
        assert response.method == SearchMethod.CLI
        assert [hit.name for hit in response.results] == ["fast-widget"]
        args = mock_exec.await_args.args
        assert args[:3] == ("/usr/bin/npm", "search", "widgets")
        assert "--json" in args
        assert args[-2:] == ("--searchlimit", "3")

    @pytest.mark.asyncio
    async def test_cli_failure_falls_back_to_http(self, http_search_body) -> None:
        """A failing npm CLI falls back to the HTTP API."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=http_search_body)

        process = _mock_process(b"", returncode=1, stderr=b"npm ERR! network")
        with (
            patch("solution_scout.registry.npm_registry.shutil.which", return_value="/usr/bin/npm"),
            patch("asyncio.create_subprocess_exec", new_callable=AsyncMock, return_value=process),
        ):
            async with _client(handler, prefer_cli_search=True) as client:
                response = await client.search("widgets")

        assert response.success
        assert response.method == SearchMethod.HTTP

    @pytest.mark.asyncio
    async def test_unstartable_cli_falls_back_to_http(self) -> None:
        """An npm binary that cannot be executed falls back to the HTTP API."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"objects": []})

        with (
            patch("solution_scout.registry.npm_registry.shutil.which", return_value="/usr/bin/npm"),
            patch(
                "asyncio.create_subprocess_exec",
                new_callable=AsyncMock,
                side_effect=PermissionError(13, "Permission denied", "/usr/bin/npm"),
            ),
        ):
            async with _client(handler, prefer_cli_search=True) as client:
                response = await client.search("widgets")

        assert response.success
        assert response.method == SearchMethod.HTTP
        assert response.results == []

    @pytest.mark.asyncio
    async def test_unstartable_cli_and_failing_http(self) -> None:
        """Both errors are reported when the CLI cannot start and HTTP fails."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(400, json={"error": "bad query"})

        with (
            patch("solution_scout.registry.npm_registry.shutil.which", return_value="/usr/bin/npm"),
            patch(
                "asyncio.create_subprocess_exec",
                new_callable=AsyncMock,
                side_effect=PermissionError(13, "Permission denied", "/usr/bin/npm"),
            ),
        ):
            async with _client(handler, prefer_cli_search=True) as client:
                response = await client.search("widgets")

        assert not response.success
        assert "npm search could not start" in response.error

    @pytest.mark.asyncio
    async def test_both_methods_fail(self) -> None:
        """When both strategies fail the response carries both errors."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(400, json={"error": "bad query"})

        with patch("solution_scout.registry.npm_registry.shutil.which", return_value=None):
            async with _client(handler, prefer_cli_search=True) as client:
                response = await client.search("widgets")

        assert not response.success
        assert response.results == []
        assert response.error.startswith("Both search methods failed.")
        assert "executable not found" in response.error
        assert "HTTP request failed" in response.error


def test_env_overrides_registry_url(monkeypatch) -> None:
    """NPM_REGISTRY_URL overrides the default; explicit arguments win."""
    monkeypatch.setenv("NPM_REGISTRY_URL", "https://mirror.test/")

    assert NpmRegistryClient().registry_url == "https://mirror.test"
    assert NpmRegistryClient(registry_url="https://explicit.test").registry_url == "https://explicit.test"
