"""HTTP client for the job search and salary estimate endpoints."""

from __future__ import annotations

import logging

import httpx

from jobsearch.models.search import ProcessingSignal, SearchResultPage
from jobsearch.storage.cache import ResponseCache
from jobsearch.tools.query_builder import search_key

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0
USER_AGENT = "JobSearchClient/1.0"

RATE_LIMIT_MESSAGE = "Too many requests. Please wait a moment and try again."
POLL_TIMEOUT_MESSAGE = "Search is taking longer than expected. Please try again."


# =============================================================================
# Errors
# =============================================================================


class SearchError(Exception):
    """A search request failed; ``str(error)`` is fit to show the user."""


class RateLimitedError(SearchError):
    def __init__(self, message: str = RATE_LIMIT_MESSAGE) -> None:
        super().__init__(message)


class SearchServerError(SearchError):
    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class SearchTransportError(SearchError):
    pass


class PollTimeoutError(SearchError):
    def __init__(self, message: str = POLL_TIMEOUT_MESSAGE) -> None:
        super().__init__(message)


class SalaryLookupError(Exception):
    """Salary estimate unavailable; callers degrade to a fallback."""


# =============================================================================
# Client
# =============================================================================


class JobSearchAPI:
    """Async client for ``GET /api/jobs`` and ``GET /api/salary-estimate``.

    A 202 answer comes back as a ``ProcessingSignal``; any other 2xx answer is
    normalized into a ``SearchResultPage``. Everything else raises a
    ``SearchError`` subclass.
    """

    def __init__(
        self,
        base_url: str,
        *,
        token: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        cache: ResponseCache | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        headers = {"User-Agent": USER_AGENT, "Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            follow_redirects=True,
        )
        if client is not None:
            self._client.headers.update(headers)
        self.base_url = base_url.rstrip("/")
        self.cache = cache

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> JobSearchAPI:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def search(self, params: dict[str, str | int]) -> SearchResultPage | ProcessingSignal:
        """Issue one search request."""
        key = search_key(params, backend=self.base_url)
        if self.cache is not None:
            cached = self.cache.get(key)
            if cached is not None:
                logger.debug("Cache hit for %s", key)
                return cached

        try:
            response = await self._client.get("/api/jobs", params=params)
        except httpx.HTTPError as e:
            logger.warning("Search request failed: %s", e)
            raise SearchTransportError(str(e) or e.__class__.__name__) from e

        if response.status_code == 202:
            signal = ProcessingSignal.from_api(_json_or_empty(response))
            logger.debug("Search processing: %s (in progress=%s)", signal.message, signal.search_in_progress)
            return signal

        if response.status_code == 429:
            logger.warning("Search rate limited")
            raise RateLimitedError()

        if not response.is_success:
            body = _json_or_empty(response)
            message = body.get("message") or body.get("error") or f"Server error: {response.status_code}"
            logger.warning("Search HTTP error %d: %s", response.status_code, message)
            raise SearchServerError(message, status_code=response.status_code)

        try:
            body = response.json()
        except ValueError as e:
            raise SearchServerError("Invalid response from server", status_code=response.status_code) from e
        if not isinstance(body, dict):
            raise SearchServerError("Invalid response from server", status_code=response.status_code)

        page = SearchResultPage.from_api(body)
        logger.info(
            "Search page %s: %d items (total=%d, has_more=%s%s)",
            params.get("page"), len(page.items), page.total_results, page.has_more,
            ", cached" if page.cached else "",
        )
        if self.cache is not None and page.items:
            self.cache.set(key, page)
        return page

    async def estimate_salary(self, job_id: str, title: str, location: str = "") -> str:
        """Look up an estimated salary range string for one job."""
        try:
            response = await self._client.get(
                "/api/salary-estimate",
                params={"id": job_id, "title": title, "location": location},
            )
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise SalaryLookupError(f"Salary estimate failed for {job_id}: {e}") from e

        value = data.get("range") if isinstance(data, dict) else None
        if not isinstance(value, str) or not value.strip() or value.strip().upper() == "N/A":
            raise SalaryLookupError(f"Malformed salary estimate for {job_id}: {data!r}")
        return value.strip()


def _json_or_empty(response: httpx.Response) -> dict:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}
