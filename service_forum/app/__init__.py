"""
Forum service package for Gitorum.

Fronts GitHub Discussions for the forum pages:
- Credentials: server token, GitHub App installation token, user token
- Caching: process-local response cache with per-query TTLs
- Resilience: one rotate-and-retry on upstream rate limits
- Fallback: anonymous REST reads when no credential exists

Structure:
- app.main: FastAPI composition root and JSON routes.
- app.auth: key conversion, App JWT, token broker, credential resolver.
- app.adapters: GitHub GraphQL and REST clients.
- app.caching: response cache and TTL policy.
- app.domain: canonical models, mappers, query executor.
- app.discussions: the fetch/write functions callers use.
"""
