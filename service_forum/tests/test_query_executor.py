"""
Unit tests for the rate-limit-aware query executor.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from service_forum.app.domain import RateLimitAwareExecutor
from shared.errors import RateLimitError, UpstreamError


class DummyMetrics:
    """Minimal metrics collector stub."""

    def __init__(self):
        self.counters = []

    def increment_counter(self, metric_name: str, **labels):
        self.counters.append((metric_name, labels))


def make_broker(configured: bool = True, fresh_token="ghs_fresh"):
    broker = MagicMock()
    broker.is_configured = configured
    broker.get_installation_token = AsyncMock(return_value=fresh_token)
    return broker


class TestRateLimitAwareExecutor:
    """Test cases for RateLimitAwareExecutor."""

    @pytest.fixture
    def metrics(self):
        return DummyMetrics()

    @pytest.mark.asyncio
    async def test_success_needs_no_refresh(self, metrics):
        broker = make_broker()
        executor = RateLimitAwareExecutor(broker, metrics=metrics)
        query = AsyncMock(return_value={"ok": True})

        assert await executor.execute_read("ghs_old", query) == {"ok": True}
        query.assert_awaited_once_with("ghs_old")
        broker.get_installation_token.assert_not_awaited()
        assert metrics.counters == []

    @pytest.mark.asyncio
    async def test_rate_limit_rotates_and_retries_once(self, metrics):
        broker = make_broker()
        executor = RateLimitAwareExecutor(broker, metrics=metrics)
        query = AsyncMock(side_effect=[RateLimitError(), {"ok": True}])

        assert await executor.execute_read("ghs_old", query) == {"ok": True}
        assert [call.args for call in query.await_args_list] == [("ghs_old",), ("ghs_fresh",)]
        broker.invalidate.assert_called_once()
        broker.get_installation_token.assert_awaited_once_with(force_refresh=True)
        assert metrics.counters == [("rate_limit_retries_total", {"outcome": "recovered"})]

    @pytest.mark.asyncio
    async def test_second_rate_limit_is_not_retried_again(self, metrics):
        broker = make_broker()
        executor = RateLimitAwareExecutor(broker, metrics=metrics)
        query = AsyncMock(side_effect=RateLimitError())

        with pytest.raises(RateLimitError):
            await executor.execute_read("ghs_old", query)

        assert query.await_count == 2
        assert broker.get_installation_token.await_count == 1
        assert metrics.counters == [("rate_limit_retries_total", {"outcome": "exhausted"})]

    @pytest.mark.asyncio
    async def test_other_failures_propagate_without_retry(self):
        broker = make_broker()
        executor = RateLimitAwareExecutor(broker)
        query = AsyncMock(side_effect=UpstreamError("github_graphql", "Unexpected status 500"))

        with pytest.raises(UpstreamError):
            await executor.execute_read("ghs_old", query)

        query.assert_awaited_once()
        broker.get_installation_token.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unconfigured_app_surfaces_rate_limit(self, metrics):
        broker = make_broker(configured=False)
        executor = RateLimitAwareExecutor(broker, metrics=metrics)
        query = AsyncMock(side_effect=RateLimitError())

        with pytest.raises(RateLimitError):
            await executor.execute_read("ghp_server", query)

        query.assert_awaited_once()
        broker.get_installation_token.assert_not_awaited()
        assert metrics.counters == [("rate_limit_retries_total", {"outcome": "not_configured"})]

    @pytest.mark.asyncio
    async def test_failed_refresh_surfaces_rate_limit(self, metrics):
        broker = make_broker(fresh_token=None)
        executor = RateLimitAwareExecutor(broker, metrics=metrics)
        query = AsyncMock(side_effect=RateLimitError())

        with pytest.raises(RateLimitError):
            await executor.execute_read("ghs_old", query)

        query.assert_awaited_once()
        assert metrics.counters == [("rate_limit_retries_total", {"outcome": "refresh_failed"})]

    @pytest.mark.asyncio
    async def test_retry_failure_of_another_kind_propagates(self, metrics):
        broker = make_broker()
        executor = RateLimitAwareExecutor(broker, metrics=metrics)
        query = AsyncMock(side_effect=[RateLimitError(), UpstreamError("github_graphql", "boom")])

        with pytest.raises(UpstreamError):
            await executor.execute_read("ghs_old", query)

        assert metrics.counters == [("rate_limit_retries_total", {"outcome": "retry_failed"})]

    @pytest.mark.asyncio
    async def test_rate_limit_message_on_generic_error_is_recognised(self):
        broker = make_broker()
        executor = RateLimitAwareExecutor(broker)
        query = AsyncMock(side_effect=[RuntimeError("API rate limit exceeded for installation"), "data"])

        assert await executor.execute_read("ghs_old", query) == "data"
