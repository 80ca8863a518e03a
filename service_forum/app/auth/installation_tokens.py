"""
GitHub App installation token broker.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Optional

import httpx

from shared.config import ForumConfig
from shared.logging import get_logger
from shared.metrics import MetricsCollector
from .app_jwt import sign_app_jwt

TOKEN_SAFETY_MARGIN_SECONDS = 60
GITHUB_JSON_MEDIA_TYPE = "application/vnd.github+json"


@dataclass(frozen=True)
class InstallationToken:
    """Installation access token with its absolute expiry (epoch seconds)."""

    token: str
    expires_at: float

    def is_fresh(self, now: float, margin: float = TOKEN_SAFETY_MARGIN_SECONDS) -> bool:
        return now < self.expires_at - margin


def parse_expires_at(value: str) -> float:
    """Parse GitHub's ``2016-07-11T22:14:10Z`` timestamps into epoch seconds."""
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value).timestamp()


class InstallationTokenBroker:
    """Exchanges App JWTs for installation tokens and caches the latest one.

    The broker holds a single token slot shared by every request in the
    process. Concurrent refreshes are not serialised: they may race and
    each hit GitHub, the last writer wins.
    """

    def __init__(
        self,
        config: ForumConfig,
        http_client: httpx.AsyncClient,
        *,
        metrics: Optional[MetricsCollector] = None,
        clock: Callable[[], float] = time.time,
        safety_margin: float = TOKEN_SAFETY_MARGIN_SECONDS,
    ) -> None:
        self.config = config
        self.http_client = http_client
        self.metrics = metrics
        self.clock = clock
        self.safety_margin = safety_margin
        self.logger = get_logger("forum.auth.installation_tokens")

        self._token: Optional[InstallationToken] = None
        self.refresh_count = 0

    @property
    def is_configured(self) -> bool:
        """Whether app id, private key and installation id are all set."""
        return self.config.app_credentials_configured

    @property
    def cached_token(self) -> Optional[InstallationToken]:
        return self._token

    def invalidate(self) -> None:
        """Drop the cached token so the next call performs an exchange."""
        self._token = None

    async def get_installation_token(self, force_refresh: bool = False) -> Optional[str]:
        """Return a usable installation token, or None if none can be had.

        None means "try the next credential source"; it is never fatal.
        """
        if not self.is_configured:
            return None

        if not force_refresh and self._token is not None:
            if self._token.is_fresh(self.clock(), self.safety_margin):
                return self._token.token

        if force_refresh:
            self.invalidate()

        return await self._exchange()

    async def _exchange(self) -> Optional[str]:
        app_jwt = sign_app_jwt(self.config.github_app_id, self.config.github_app_private_key)
        if app_jwt is None:
            self._record_refresh("key_error")
            return None

        self.refresh_count += 1
        url = (
            f"{self.config.github_api_url.rstrip('/')}"
            f"/app/installations/{self.config.github_app_installation_id}/access_tokens"
        )
        try:
            response = await self.http_client.post(
                url,
                headers={
                    "Authorization": f"Bearer {app_jwt}",
                    "Accept": GITHUB_JSON_MEDIA_TYPE,
                    "User-Agent": self.config.github_user_agent,
                },
            )
        except httpx.HTTPError as exc:
            self.logger.error("Error fetching installation token", error=str(exc))
            self._record_refresh("transport_error")
            return None

        if not response.is_success:
            self.logger.error(
                "Failed to get installation token",
                status_code=response.status_code,
                response=response.text[:500],
            )
            self._record_refresh("http_error")
            return None

        try:
            payload: Dict[str, Any] = response.json()
            token = InstallationToken(
                token=payload["token"],
                expires_at=parse_expires_at(payload["expires_at"]),
            )
        except (ValueError, KeyError, TypeError, AttributeError) as exc:
            self.logger.error("Malformed installation token response", error=str(exc))
            self._record_refresh("parse_error")
            return None

        self._token = token
        self._record_refresh("ok")
        self.logger.info("Installation token issued", expires_at=token.expires_at)
        return token.token

    def _record_refresh(self, status: str) -> None:
        if self.metrics:
            self.metrics.increment_counter("installation_token_refresh_total", status=status)
