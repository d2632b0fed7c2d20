"""
Inkwell Backend: GitHub Contents Service
=========================================

What:  Concrete ContentSource backed by the GitHub REST "repository contents"
       endpoint (`GET /repos/{owner}/{repo}/contents/{path}`).
How:   One shared httpx.AsyncClient, created lazily with the API base URL,
       the v3 JSON accept header, the optional token and the configured
       timeout. Every failure is translated into RemoteFetchError.
Who:   Instantiated once at import time; used by TreeFetcher and by the
       health check route. The lifespan handler closes the client.

Transient failures (network errors, timeouts, 5xx) are retried with tenacity
using exponential backoff. A 4xx, or a transient failure that outlasts the
retries, fails the whole traversal.
"""

import logging
import time
import uuid
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

from inkwell import __version__
from inkwell.config import settings
from inkwell.exceptions import RemoteFetchError
from inkwell.services.content_base import ContentSource

logger = logging.getLogger(__name__)


def is_transient(exc: BaseException) -> bool:
    """Network errors, timeouts and 5xx responses may succeed on a retry."""
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code >= 500
    return isinstance(exc, httpx.TransportError)


class GitHubContentService(ContentSource):
    """
    GitHub REST API implementation of ContentSource.

    Args:
        api_url:   Base URL of the API (GitHub Enterprise uses a different one)
        token:     Personal access token; anonymous requests when empty
        timeout:   Seconds before a request is abandoned
        transport: Optional httpx transport (tests pass an httpx.MockTransport)
        retry_attempts: Total tries for a transiently failing request
        retry_min_wait: First backoff delay in seconds (0 disables waiting)
    """

    ACCEPT = "application/vnd.github.v3+json"

    def __init__(
        self,
        api_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        retry_attempts: Optional[int] = None,
        retry_min_wait: Optional[float] = None,
    ):
        self.api_url = (api_url or settings.github_api_url).rstrip("/")
        self.token = settings.gh_token if token is None else token
        self.timeout = timeout or settings.github_timeout
        self.retry_attempts = retry_attempts or settings.github_retry_attempts
        self.retry_min_wait = (
            settings.github_retry_min_wait if retry_min_wait is None else retry_min_wait
        )
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

        logger.info(
            "GitHubContentService configured with api_url=%s, token=%s, timeout=%.1fs",
            self.api_url,
            "set" if self.token else "unset",
            self.timeout,
        )

    def _headers(self) -> Dict[str, str]:
        headers = {
            "Accept": self.ACCEPT,
            "User-Agent": f"inkwell/{__version__}",
        }
        if self.token:
            headers["Authorization"] = f"token {self.token}"
        return headers

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.api_url,
                headers=self._headers(),
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    @staticmethod
    def contents_url(params: Dict[str, Any]) -> str:
        """
        Relative URL of the contents endpoint for `params`.

        Raises:
            RemoteFetchError: owner or repo is missing
        """
        owner = params.get("owner")
        repo = params.get("repo")
        if not owner or not repo:
            raise RemoteFetchError(
                message="Both 'owner' and 'repo' are needed to list repository contents",
                context={"params": dict(params)},
            )
        path = str(params.get("path") or "").strip("/")
        return f"/repos/{quote(str(owner))}/{quote(str(repo))}/contents/{quote(path, safe='/')}"

    async def _get_json(self, url: str, query: Optional[Dict[str, str]]) -> Any:
        """GET `url` and decode the JSON body, retrying transient failures."""
        retrying = AsyncRetrying(
            retry=retry_if_exception(is_transient),
            stop=stop_after_attempt(self.retry_attempts),
            wait=wait_exponential(
                multiplier=self.retry_min_wait, max=settings.github_retry_max_wait
            )
            + wait_random(0, self.retry_min_wait),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                response = await self.client.get(url, params=query)
                response.raise_for_status()
        return response.json()

    async def list_contents(self, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        """
        List one repository location.

        Flow:
            1. Build the contents URL from owner/repo/path
            2. GET it, passing `ref` as a query parameter when given
            3. Raise for non-2xx statuses, retrying transient failures
            4. Normalise a single-file object into a one-item list

        Raises:
            RemoteFetchError: network error, timeout, non-2xx status or a
                              body that is not a listing
        """
        request_id = str(uuid.uuid4())[:8]
        url = self.contents_url(params)
        query = {"ref": params["ref"]} if params.get("ref") else None

        start_time = time.perf_counter()
        try:
            data = await self._get_json(url, query)
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.warning("[%s] GitHub returned %d for %s", request_id, status, url)
            raise RemoteFetchError(
                message=f"GitHub returned HTTP {status} for {url}",
                status_code=status,
                context={"url": url, "ref": params.get("ref"), "body": e.response.text[:500]},
            ) from e
        except httpx.TimeoutException as e:
            logger.warning("[%s] GitHub request timed out for %s", request_id, url)
            raise RemoteFetchError(
                message=f"GitHub request timed out after {self.timeout}s",
                context={"url": url, "error_type": type(e).__name__},
            ) from e
        except httpx.HTTPError as e:
            logger.warning("[%s] GitHub request failed for %s: %s", request_id, url, str(e))
            raise RemoteFetchError(
                message="Could not reach the GitHub API",
                context={"url": url, "error": str(e), "error_type": type(e).__name__},
            ) from e
        except ValueError as e:
            raise RemoteFetchError(
                message="GitHub returned a body that is not JSON",
                context={"url": url},
            ) from e

        duration_ms = (time.perf_counter() - start_time) * 1000

        if isinstance(data, dict):
            data = [data]
        if not isinstance(data, list):
            raise RemoteFetchError(
                message="GitHub returned an unexpected contents payload",
                context={"url": url, "payload_type": type(data).__name__},
            )

        logger.debug(
            "[%s] Listed %s in %.0fms: %d entries", request_id, url, duration_ms, len(data)
        )
        return data

    async def health_check(self) -> bool:
        """
        Check if the GitHub API is reachable.

        How:     GET /rate_limit, which does not count against the quota.
        Returns: True on a 2xx response, False on anything else.
        """
        try:
            response = await self.client.get("/rate_limit")
            return response.is_success
        except httpx.HTTPError as e:
            logger.warning("GitHub health check failed: %s", str(e))
            return False

    async def close(self) -> None:
        """Close the shared HTTP client; called on application shutdown."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None


github_service = GitHubContentService()
