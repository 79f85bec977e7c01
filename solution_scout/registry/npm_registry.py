"""npm registry client.

Implements the registry contract against the public npm endpoints:
- Package documents from the registry (flattened like ``npm view --json``)
- Weekly download counts from the downloads API
- Search through the npm CLI, falling back to the registry search API
- Exponential backoff with jitter on 429 / 5xx responses
"""

import asyncio
import json
import logging
import os
import shutil
from typing import Any

import httpx
from pydantic import ValidationError

from solution_scout.consts import (
    ENV_DOWNLOADS_URL,
    ENV_REGISTRY_URL,
    NPM_DOWNLOADS_URL,
    NPM_MAX_RETRIES,
    NPM_REGISTRY_URL,
    NPM_REQUEST_TIMEOUT,
    SEARCH_DEFAULT_LIMIT,
)
from solution_scout.models.model_package import PackageMetadata
from solution_scout.models.model_search import SearchHit, SearchMethod, SearchResponse
from solution_scout.registry.base import PackageNotFoundError, RegistryError
from solution_scout.registry.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = (429, 500, 502, 503, 504)

# Fields kept from a search result package object
SEARCH_HIT_FIELDS = (
    "name",
    "version",
    "description",
    "author",
    "date",
    "keywords",
    "links",
    "publisher",
    "maintainers",
)


def _escape_name(name: str) -> str:
    """Registry path segment for a package name (scoped '/' becomes %2F)."""
    return name.replace("/", "%2F")


def _flatten_document(document: dict[str, Any], requested_name: str) -> dict[str, Any]:
    """Overlay the latest version's manifest on the top-level document.

    The registry keeps ``types``, ``typings`` and ``deprecated`` on each
    version, while ``time`` only exists at the top level.
    """
    merged = dict(document)
    latest = (document.get("dist-tags") or {}).get("latest")
    versions = document.get("versions")

    if latest and isinstance(versions, dict):
        version_data = versions.get(latest)
        if isinstance(version_data, dict):
            merged.update(version_data)

    merged.setdefault("version", latest)
    merged["time"] = document.get("time")
    if not merged.get("name"):
        merged["name"] = requested_name
    return merged


def _hit_from_package(package: dict[str, Any], score: dict[str, Any] | None = None) -> SearchHit | None:
    data = {key: package.get(key) for key in SEARCH_HIT_FIELDS if package.get(key) is not None}
    if score is not None:
        data["score"] = score
    try:
        return SearchHit.model_validate(data)
    except ValidationError as e:
        logger.debug(f"Skipping malformed search result {package.get('name')!r}: {e}")
        return None


class NpmRegistryClient:
    """Async client for the npm registry.

    Resilience features:
    - Bounded retries with exponential backoff and jitter on 429 / 5xx
    - Download stats that degrade to 0 instead of failing
    - CLI search with HTTP fallback
    """

    def __init__(
        self,
        registry_url: str | None = None,
        downloads_url: str | None = None,
        timeout: float = NPM_REQUEST_TIMEOUT,
        max_retries: int = NPM_MAX_RETRIES,
        npm_path: str = "npm",
        prefer_cli_search: bool = True,
        http_client: httpx.AsyncClient | None = None,
    ):
        """Initialize npm registry client.

        Args:
            registry_url: Registry base URL. None = read from env (NPM_REGISTRY_URL).
            downloads_url: Weekly downloads endpoint. None = read from env (NPM_DOWNLOADS_URL).
            timeout: HTTP and CLI timeout in seconds.
            max_retries: Retries on throttling / server errors per request.
            npm_path: npm executable used for CLI search.
            prefer_cli_search: Try `npm search` before the HTTP search API.
            http_client: Preconfigured client (mainly for tests).
        """
        self.registry_url = (
            registry_url or os.getenv(ENV_REGISTRY_URL, "").strip() or NPM_REGISTRY_URL
        ).rstrip("/")
        self.downloads_url = (
            downloads_url or os.getenv(ENV_DOWNLOADS_URL, "").strip() or NPM_DOWNLOADS_URL
        ).rstrip("/")
        self.timeout = timeout
        self.max_retries = max_retries
        self.npm_path = npm_path
        self.prefer_cli_search = prefer_cli_search
        self._client = http_client

    async def __aenter__(self) -> "NpmRegistryClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                headers={"Accept": "application/json"},
                follow_redirects=True,
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()

    async def _get_json(self, url: str, params: dict[str, Any] | None = None) -> Any:
        """GET a JSON document, retrying throttled and failed-server responses.

        Raises:
            httpx.HTTPStatusError: On non-retryable errors or exhausted retries.
            httpx.HTTPError: On transport errors.
            ValueError: On a body that is not JSON.
        """
        client = await self._get_client()
        rate_limiter = RateLimiter(max_retries=self.max_retries)

        while True:
            response = await client.get(url, params=params)

            if response.status_code in RETRYABLE_STATUS_CODES and not rate_limiter.exhausted:
                delay = rate_limiter.backoff()
                logger.warning(f"Registry returned {response.status_code}, retrying in {delay:.1f}s")
                await asyncio.sleep(delay)
                continue

            response.raise_for_status()
            return response.json()

    async def fetch_metadata(self, name: str) -> PackageMetadata:
        """Fetch metadata for a package.

        Args:
            name: Package name (scoped names allowed).

        Returns:
            PackageMetadata for the latest version.

        Raises:
            PackageNotFoundError: The name does not exist in the registry.
            RegistryError: Registry unreachable or response malformed.
        """
        url = f"{self.registry_url}/{_escape_name(name)}"
        try:
            document = await self._get_json(url)
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                raise PackageNotFoundError(f"Package not found: {name}") from e
            raise RegistryError(
                f"Failed to fetch info for {name}: HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise RegistryError(f"Failed to fetch info for {name}: {e}") from e
        except ValueError as e:
            raise RegistryError(f"Failed to fetch info for {name}: invalid JSON ({e})") from e

        if not isinstance(document, dict):
            raise RegistryError(f"Failed to fetch info for {name}: unexpected response shape")

        try:
            return PackageMetadata.model_validate(_flatten_document(document, name))
        except ValidationError as e:
            raise RegistryError(f"Failed to fetch info for {name}: {e}") from e

    async def fetch_weekly_downloads(self, name: str) -> int:
        """Fetch downloads for the last week.

        Network and parse errors are absorbed and reported as 0.
        """
        try:
            data = await self._get_json(f"{self.downloads_url}/{name}")
        except Exception as e:
            logger.debug(f"Download stats unavailable for {name}: {e}")
            return 0

        downloads = data.get("downloads") if isinstance(data, dict) else None
        if isinstance(downloads, bool) or not isinstance(downloads, (int, float)):
            return 0
        return max(0, int(downloads))

    async def search(self, query: str, limit: int = SEARCH_DEFAULT_LIMIT) -> SearchResponse:
        """Search packages, trying the npm CLI first and the HTTP API second.

        Args:
            query: Free-text search.
            limit: Maximum number of results (values < 1 use the default).

        Returns:
            SearchResponse; success=False with both error messages when every
            method fails.
        """
        if limit < 1:
            limit = SEARCH_DEFAULT_LIMIT

        cli_error: str | None = None
        if self.prefer_cli_search:
            try:
                results = await self._search_via_cli(query, limit)
                return SearchResponse(
                    success=True, method=SearchMethod.CLI, results=results, count=len(results)
                )
            except RegistryError as e:
                cli_error = str(e)
                logger.warning(f"CLI search failed, falling back to HTTP: {e}")

        try:
            results = await self._search_via_http(query, limit)
            return SearchResponse(
                success=True, method=SearchMethod.HTTP, results=results, count=len(results)
            )
        except RegistryError as e:
            if cli_error is not None:
                error = f"Both search methods failed. CLI: {cli_error}, HTTP: {e}"
            else:
                error = f"HTTP search failed: {e}"
            logger.error(error)
            return SearchResponse(success=False, error=error)

    async def _search_via_cli(self, query: str, limit: int) -> list[SearchHit]:
        """Search with `npm search --json --long`.

        Raises:
            RegistryError: npm missing or not startable, failing, timing out or
                printing non-JSON.
        """
        executable = shutil.which(self.npm_path)
        if executable is None:
            raise RegistryError(f"'{self.npm_path}' executable not found")

        cmd = [executable, "search", query, "--json", "--long", "--searchlimit", str(limit)]
        logger.debug(f"Running: {' '.join(cmd)}")

        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise RegistryError(f"npm search could not start: {e}") from e

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=self.timeout)
        except TimeoutError:
            process.kill()
            await process.wait()
            raise RegistryError(f"npm search timed out ({self.timeout}s)")

        if process.returncode != 0:
            error_msg = stderr.decode("utf-8", errors="replace").strip()
            raise RegistryError(f"npm search exited with code {process.returncode}: {error_msg[:500]}")

        try:
            data = json.loads(stdout.decode("utf-8", errors="replace"))
        except json.JSONDecodeError as e:
            raise RegistryError(f"Could not parse npm search output: {e}") from e

        if not isinstance(data, list):
            raise RegistryError("Unexpected npm search output")

        hits = [_hit_from_package(item) for item in data if isinstance(item, dict)]
        return [hit for hit in hits if hit is not None]

    async def _search_via_http(self, query: str, limit: int) -> list[SearchHit]:
        """Search with the registry's /-/v1/search endpoint.

        Raises:
            RegistryError: Request failed or response not understood.
        """
        try:
            data = await self._get_json(
                f"{self.registry_url}/-/v1/search", params={"text": query, "size": limit}
            )
        except httpx.HTTPError as e:
            raise RegistryError(f"HTTP request failed: {e}") from e
        except ValueError as e:
            raise RegistryError(f"Failed to parse HTTP response: {e}") from e

        objects = data.get("objects") if isinstance(data, dict) else None
        if not isinstance(objects, list):
            raise RegistryError("Failed to parse HTTP response: missing 'objects'")

        hits = []
        for obj in objects:
            if not isinstance(obj, dict) or not isinstance(obj.get("package"), dict):
                continue
            hit = _hit_from_package(obj["package"], score=obj.get("score"))
            if hit is not None:
                hits.append(hit)
        return hits
