"""
Forum domain package.

- models: canonical result structures
- mappers: GraphQL and REST payloads -> canonical structures
- query_executor: one-shot rotate-and-retry around upstream reads
"""

from .query_executor import RateLimitAwareExecutor

__all__ = ["RateLimitAwareExecutor"]
