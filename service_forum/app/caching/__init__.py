"""
Forum caching package.

Short-lived, process-local caches for GitHub responses. Entries are never
invalidated by writes; staleness is bounded by each query class TTL.
"""

from .response_cache import MISS, ResponseCache, make_key

__all__ = ["MISS", "ResponseCache", "make_key"]
