"""
Adapters package for the forum service.

HTTP clients for GitHub. These adapters encapsulate:

- Endpoint URLs, headers and request shapes
- Classification of failed responses into the shared error kinds

Keep adapters thin: no caching and no credential selection happen here.
"""

from .classify import classify_github_failure
from .graphql_client import GitHubGraphQLClient
from .rest_client import GitHubRestClient

__all__ = [
    "GitHubGraphQLClient",
    "GitHubRestClient",
    "classify_github_failure",
]
