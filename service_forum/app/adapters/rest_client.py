"""
Anonymous GitHub REST client used when no read credential is available.

Anonymous REST calls share a small per-IP quota, so callers are expected to
cache aggressively.
"""

import time
from typing import Any, Dict, List, Optional, Tuple

import httpx

from shared.errors import UpstreamError
from shared.logging import get_logger
from shared.metrics import MetricsCollector
from .classify import classify_github_failure

# full+json adds body_html next to the raw markdown body
GITHUB_FULL_MEDIA_TYPE = "application/vnd.github.full+json"
MAX_PER_PAGE = 100


class GitHubRestClient:
    """Unauthenticated reads of repository discussions."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        owner: str,
        repo: str,
        api_url: str = "https://api.github.com",
        *,
        user_agent: str = "Gitorum",
        metrics: Optional[MetricsCollector] = None,
    ) -> None:
        self.http_client = http_client
        self.owner = owner
        self.repo = repo
        self.base_url = api_url.rstrip("/")
        self.user_agent = user_agent
        self.metrics = metrics
        self.logger = get_logger("forum.rest_client")

    @property
    def repo_path(self) -> str:
        return f"/repos/{self.owner}/{self.repo}"

    async def get_repository(self) -> Dict[str, Any]:
        response = await self._get(self.repo_path)
        return self._json(response)

    async def list_discussions(self, page: int = 1, per_page: int = MAX_PER_PAGE) -> Tuple[List[Dict[str, Any]], bool]:
        """Return one page of discussions and whether another page follows."""
        params = {"page": page, "per_page": min(per_page, MAX_PER_PAGE)}
        response = await self._get(f"{self.repo_path}/discussions", params=params)
        items = self._json(response)
        if not isinstance(items, list):
            raise UpstreamError("github_rest", "Expected a list of discussions")
        return items, "next" in response.links

    async def get_discussion(self, number: int) -> Optional[Dict[str, Any]]:
        """Return a single discussion, or None when it does not exist."""
        response = await self._get(f"{self.repo_path}/discussions/{number}", allow_not_found=True)
        if response is None:
            return None
        return self._json(response)

    async def list_discussion_comments(self, number: int, per_page: int = 50) -> List[Dict[str, Any]]:
        params = {"per_page": min(per_page, MAX_PER_PAGE)}
        response = await self._get(f"{self.repo_path}/discussions/{number}/comments", params=params)
        items = self._json(response)
        if not isinstance(items, list):
            raise UpstreamError("github_rest", "Expected a list of comments")
        return items

    async def _get(
        self,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        *,
        allow_not_found: bool = False,
    ) -> Optional[httpx.Response]:
        url = f"{self.base_url}{path}"
        start_time = time.time()
        try:
            response = await self.http_client.get(
                url,
                params=params,
                headers={"Accept": GITHUB_FULL_MEDIA_TYPE, "User-Agent": self.user_agent},
            )
        except httpx.HTTPError as exc:
            self.logger.error("GitHub REST transport error", url=url, error=str(exc))
            self._record("transport_error", start_time)
            raise UpstreamError("github_rest", str(exc)) from exc

        if response.status_code == 404 and allow_not_found:
            self._record("not_found", start_time)
            return None

        if not response.is_success:
            rate_limited = classify_github_failure(response.status_code, response.text)
            if rate_limited is not None:
                self.logger.warning(
                    "GitHub REST rate limited",
                    url=url,
                    remaining=response.headers.get("x-ratelimit-remaining"),
                )
                self._record("rate_limited", start_time)
                raise rate_limited

            self.logger.error(
                "GitHub REST request failed",
                url=url,
                status_code=response.status_code,
                response=response.text[:500],
            )
            self._record("http_error", start_time)
            raise UpstreamError(
                "github_rest",
                f"Unexpected status {response.status_code}",
                details={"status_code": response.status_code, "url": url},
            )

        self._record("ok", start_time)
        return response

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamError("github_rest", "Malformed JSON response") from exc

    def _record(self, outcome: str, start_time: float) -> None:
        if self.metrics:
            self.metrics.increment_counter("upstream_requests_total", backend="rest", outcome=outcome)
            self.metrics.get_metric("upstream_request_duration_seconds").labels(backend="rest").observe(
                time.time() - start_time
            )
