"""
Rate-limit-aware execution of upstream reads.
"""

from typing import Awaitable, Callable, Optional, TypeVar

from shared.errors import as_rate_limit
from shared.logging import get_logger
from shared.metrics import MetricsCollector
from ..auth.installation_tokens import InstallationTokenBroker

T = TypeVar("T")

QueryFn = Callable[[str], Awaitable[T]]


class RateLimitAwareExecutor:
    """Runs a query, rotating the App token and retrying once on rate limit.

    Only rate-limit failures are retried, and only once. Rotation can yield
    a token with fresh quota because installation tokens are billed to the
    App, but that is not guaranteed.
    """

    def __init__(self, broker: InstallationTokenBroker, *, metrics: Optional[MetricsCollector] = None):
        self.broker = broker
        self.metrics = metrics
        self.logger = get_logger("forum.query_executor")

    async def execute_read(self, token: str, query_fn: QueryFn) -> T:
        try:
            return await query_fn(token)
        except Exception as exc:
            rate_limited = as_rate_limit(exc)
            if rate_limited is None:
                raise
            first_failure = exc

        if not self.broker.is_configured:
            self._record("not_configured")
            raise rate_limited from _cause(rate_limited, first_failure)

        self.logger.warning("Rate limited, rotating installation token")
        self.broker.invalidate()
        fresh_token = await self.broker.get_installation_token(force_refresh=True)
        if not fresh_token:
            self.logger.error("Installation token refresh failed after rate limit")
            self._record("refresh_failed")
            raise rate_limited from _cause(rate_limited, first_failure)

        try:
            result = await query_fn(fresh_token)
        except Exception as retry_exc:
            retry_rate_limited = as_rate_limit(retry_exc)
            if retry_rate_limited is None:
                self._record("retry_failed")
                raise
            self.logger.error("Still rate limited after token rotation")
            self._record("exhausted")
            raise retry_rate_limited from _cause(retry_rate_limited, retry_exc)

        self.logger.info("Retry succeeded after token rotation")
        self._record("recovered")
        return result

    def _record(self, outcome: str) -> None:
        if self.metrics:
            self.metrics.increment_counter("rate_limit_retries_total", outcome=outcome)


def _cause(error: BaseException, original: BaseException) -> Optional[BaseException]:
    return None if error is original else original
