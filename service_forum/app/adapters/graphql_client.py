"""
GitHub GraphQL client for the forum service.
"""

import time
from typing import Any, Dict, Optional

import httpx

from shared.errors import UpstreamError
from shared.logging import get_logger
from shared.metrics import MetricsCollector
from .classify import NOT_FOUND_ERROR_TYPE, classify_github_failure


class GitHubGraphQLClient:
    """Runs GraphQL documents against GitHub with a bearer token."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        api_url: str = "https://api.github.com",
        *,
        user_agent: str = "Gitorum",
        metrics: Optional[MetricsCollector] = None,
    ) -> None:
        self.http_client = http_client
        self.endpoint = f"{api_url.rstrip('/')}/graphql"
        self.user_agent = user_agent
        self.metrics = metrics
        self.logger = get_logger("forum.graphql_client")

    async def execute(self, token: str, query: str, variables: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Execute a query or mutation and return its ``data`` object.

        Raises RateLimitError for rate-limit responses and UpstreamError for
        every other transport, status or payload failure.
        """
        start_time = time.time()
        try:
            response = await self.http_client.post(
                self.endpoint,
                json={"query": query, "variables": variables or {}},
                headers={
                    "Authorization": f"bearer {token}",
                    "User-Agent": self.user_agent,
                },
            )
        except httpx.HTTPError as exc:
            self.logger.error("GitHub GraphQL transport error", error=str(exc))
            self._record("transport_error", start_time)
            raise UpstreamError("github_graphql", str(exc)) from exc

        if not response.is_success:
            rate_limited = classify_github_failure(response.status_code, response.text)
            if rate_limited is not None:
                self.logger.warning("GitHub GraphQL rate limited", status_code=response.status_code)
                self._record("rate_limited", start_time)
                raise rate_limited

            self.logger.error(
                "GitHub GraphQL request failed",
                status_code=response.status_code,
                response=response.text[:500],
            )
            self._record("http_error", start_time)
            raise UpstreamError(
                "github_graphql",
                f"Unexpected status {response.status_code}",
                details={"status_code": response.status_code},
            )

        try:
            payload = response.json()
        except ValueError as exc:
            self._record("parse_error", start_time)
            raise UpstreamError("github_graphql", "Malformed JSON response") from exc

        errors = payload.get("errors") if isinstance(payload, dict) else None
        # A missing discussion is a NOT_FOUND error next to a null field
        if errors and all(error.get("type") == NOT_FOUND_ERROR_TYPE for error in errors):
            errors = None
        if errors:
            rate_limited = classify_github_failure(response.status_code, errors=errors)
            if rate_limited is not None:
                self.logger.warning("GitHub GraphQL rate limited", error=rate_limited.message)
                self._record("rate_limited", start_time)
                raise rate_limited

            messages = [error.get("message", "") for error in errors]
            self._record("graphql_error", start_time)
            raise UpstreamError("github_graphql", "; ".join(messages), details={"errors": errors})

        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, dict):
            self._record("parse_error", start_time)
            raise UpstreamError("github_graphql", "Response missing data")

        self._record("ok", start_time)
        return data

    def _record(self, outcome: str, start_time: float) -> None:
        if self.metrics:
            self.metrics.increment_counter("upstream_requests_total", backend="graphql", outcome=outcome)
            self.metrics.get_metric("upstream_request_duration_seconds").labels(backend="graphql").observe(
                time.time() - start_time
            )
