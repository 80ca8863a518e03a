"""
Process-local response cache with per-entry TTLs.
"""

import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from shared.logging import get_logger
from shared.metrics import MetricsCollector


# TTL policy by query class, in seconds
CATEGORIES_TTL = 120
THREAD_LIST_TTL = 60
THREAD_DETAIL_TTL = 60
SEARCH_TTL = 60
REPO_ID_TTL = 3600


class _Miss:
    def __repr__(self) -> str:
        return "MISS"

    def __bool__(self) -> bool:
        return False


MISS: Any = _Miss()


@dataclass
class CacheEntry:
    value: Any
    expires_at: float


def make_key(operation: str, *parts: Any) -> str:
    """Build a deterministic key from the operation and every result-shaping parameter."""
    return ":".join([operation] + ["" if part is None else str(part) for part in parts])


class ResponseCache:
    """Key -> (value, expiry) map with lazy expiry on read.

    There is no size bound and no background sweeper: the key space is the
    set of distinct queries and cursors users actually request, and entries
    expire within minutes. Concurrent writers simply overwrite each other.
    """

    def __init__(
        self,
        *,
        clock: Callable[[], float] = time.time,
        metrics: Optional[MetricsCollector] = None,
    ) -> None:
        self.clock = clock
        self.metrics = metrics
        self.logger = get_logger("forum.cache")
        self._entries: Dict[str, CacheEntry] = {}

    def get(self, key: str) -> Any:
        """Return the cached value or ``MISS``. Expired entries are removed."""
        entry = self._entries.get(key)
        if entry is None:
            self._record(key, hit=False)
            return MISS

        if self.clock() > entry.expires_at:
            del self._entries[key]
            self._record(key, hit=False)
            return MISS

        self._record(key, hit=True)
        return entry.value

    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        self._entries[key] = CacheEntry(value=value, expires_at=self.clock() + ttl_seconds)
        self.logger.debug("Cached response", key=key, ttl=ttl_seconds)

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def _record(self, key: str, hit: bool) -> None:
        if self.metrics:
            self.metrics.record_cache_lookup(key.split(":", 1)[0], hit)
