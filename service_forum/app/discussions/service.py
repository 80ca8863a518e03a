"""
Discussions service: cached reads and user-authored writes against GitHub.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx

from shared.config import ForumConfig
from shared.errors import CredentialUnavailableError, ForumError, NotFoundError, UpstreamError
from shared.logging import get_logger
from shared.metrics import MetricsCollector

from ..adapters import GitHubGraphQLClient, GitHubRestClient
from ..auth import CredentialResolver, InstallationTokenBroker
from ..caching import MISS, ResponseCache, make_key
from ..caching.response_cache import (
    CATEGORIES_TTL,
    REPO_ID_TTL,
    SEARCH_TTL,
    THREAD_DETAIL_TTL,
    THREAD_LIST_TTL,
)
from ..domain import RateLimitAwareExecutor
from ..domain import mappers
from ..domain.models import (
    Category,
    CreatedComment,
    CreatedDiscussion,
    SearchResults,
    ThreadDetail,
    ThreadPage,
    Viewer,
)
from . import queries

ORDER_FIELDS = {"UPDATED_AT": "updated_at", "CREATED_AT": "created_at"}
DEFAULT_ORDER = "UPDATED_AT"


class DiscussionsService:
    """Read-through cache over GitHub Discussions for one repository.

    Reads pick the best available credential; with none at all they fall
    back to anonymous REST and normalise its payloads into the same models.
    """

    def __init__(
        self,
        config: ForumConfig,
        http_client: httpx.AsyncClient,
        *,
        cache: ResponseCache,
        broker: InstallationTokenBroker,
        metrics: Optional[MetricsCollector] = None,
    ) -> None:
        self.config = config
        self.cache = cache
        self.broker = broker
        self.metrics = metrics
        self.logger = get_logger("forum.discussions")

        self.resolver = CredentialResolver(broker, server_token=config.github_server_token)
        self.executor = RateLimitAwareExecutor(broker, metrics=metrics)
        self.graphql = GitHubGraphQLClient(
            http_client,
            config.github_api_url,
            user_agent=config.github_user_agent,
            metrics=metrics,
        )
        self.http_client = http_client
        self._rest: Optional[GitHubRestClient] = None

        # REST category node id -> numeric id, kept for the process lifetime
        self._category_ids: Dict[str, int] = {}

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def fetch_categories(self, user_token: Optional[str] = None) -> List[Category]:
        key = make_key("categories")
        cached = self.cache.get(key)
        if cached is not MISS:
            return cached

        owner, repo = self.config.require_repository()
        token = await self.resolver.get_read_token(user_token)
        if token is None:
            categories = await self._rest_categories()
        else:
            data = await self._graphql_read(token, queries.CATEGORIES_QUERY, {"owner": owner, "repo": repo})
            nodes = self._repository(data)["discussionCategories"]["nodes"]
            categories = [mappers.category_from_graphql(node) for node in nodes]

        self.cache.set(key, categories, CATEGORIES_TTL)
        return categories

    async def fetch_category_by_slug(self, slug: str, user_token: Optional[str] = None) -> Optional[Category]:
        categories = await self.fetch_categories(user_token)
        return next((category for category in categories if category.slug == slug), None)

    async def fetch_threads_by_category(
        self,
        category_id: str,
        first: int = 20,
        after: Optional[str] = None,
        order_by: str = DEFAULT_ORDER,
        user_token: Optional[str] = None,
    ) -> ThreadPage:
        if order_by not in ORDER_FIELDS:
            order_by = DEFAULT_ORDER
        key = make_key("threads", category_id, first, after, order_by)
        cached = self.cache.get(key)
        if cached is not MISS:
            return cached

        owner, repo = self.config.require_repository()
        token = await self.resolver.get_read_token(user_token)
        if token is None:
            page = await self._rest_threads(category_id, first, after, order_by)
            if page is None:
                return ThreadPage()
        else:
            variables = {
                "owner": owner,
                "repo": repo,
                "categoryId": category_id,
                "first": first,
                # REST page cursors mean nothing to GraphQL
                "after": None if mappers.is_page_cursor(after) else after,
                "orderBy": order_by,
            }
            data = await self._graphql_read(token, queries.THREADS_BY_CATEGORY_QUERY, variables)
            page = mappers.thread_page_from_graphql(self._repository(data)["discussions"])

        self.cache.set(key, page, THREAD_LIST_TTL)
        return page

    async def fetch_thread(self, number: int, user_token: Optional[str] = None) -> Optional[ThreadDetail]:
        """Return a thread with comments and replies, or None if it does not exist."""
        key = make_key("thread", number)
        cached = self.cache.get(key)
        if cached is not MISS:
            return cached

        owner, repo = self.config.require_repository()
        token = await self.resolver.get_read_token(user_token)
        if token is None:
            thread = await self._rest_thread(number)
        else:
            data = await self._graphql_read(
                token, queries.THREAD_QUERY, {"owner": owner, "repo": repo, "number": number}
            )
            node = self._repository(data).get("discussion")
            thread = mappers.thread_detail_from_graphql(node) if node else None

        if thread is not None:
            self.cache.set(key, thread, THREAD_DETAIL_TTL)
        return thread

    async def fetch_repo_id(self, user_token: Optional[str] = None) -> str:
        key = make_key("repo_id")
        cached = self.cache.get(key)
        if cached is not MISS:
            return cached

        owner, repo = self.config.require_repository()
        token = await self.resolver.get_read_token(user_token)
        if token is None:
            repository = await self._rest_client().get_repository()
            repo_id = repository["node_id"]
        else:
            data = await self._graphql_read(token, queries.REPO_ID_QUERY, {"owner": owner, "repo": repo})
            repo_id = self._repository(data)["id"]

        self.cache.set(key, repo_id, REPO_ID_TTL)
        return repo_id

    async def search_discussions(
        self,
        query: str,
        first: int = 20,
        after: Optional[str] = None,
        user_token: Optional[str] = None,
    ) -> Optional[SearchResults]:
        """Full-text search. Anonymous REST has no discussion search, so this
        returns None when no credential is available."""
        key = make_key("search", query, first, after)
        cached = self.cache.get(key)
        if cached is not MISS:
            return cached

        owner, repo = self.config.require_repository()
        token = await self.resolver.get_read_token(user_token)
        if token is None:
            self.logger.info("Search skipped, no read credential available")
            return None

        variables = {
            "searchQuery": f"{query} repo:{owner}/{repo} type:discussion",
            "first": first,
            "after": after,
        }
        data = await self._graphql_read(token, queries.SEARCH_QUERY, variables)
        results = mappers.search_results_from_graphql(data["search"])
        self.cache.set(key, results, SEARCH_TTL)
        return results

    async def has_server_credential(self) -> bool:
        return await self.resolver.has_server_credential()

    # ------------------------------------------------------------------
    # End-user operations (never cached, never use server credentials)
    # ------------------------------------------------------------------

    async def fetch_viewer(self, token: str) -> Optional[Viewer]:
        """Identify the user behind an OAuth token; None if GitHub rejects it."""
        if not token:
            return None
        try:
            data = await self.graphql.execute(token, queries.VIEWER_QUERY)
        except UpstreamError as exc:
            self.logger.info("Viewer lookup failed", error=exc.message)
            return None
        viewer = data.get("viewer")
        if not viewer:
            return None
        return Viewer(login=viewer["login"], avatar_url=viewer.get("avatarUrl") or "")

    async def create_discussion(
        self,
        token: str,
        repo_id: str,
        category_id: str,
        title: str,
        body: str,
    ) -> CreatedDiscussion:
        self._require_user_token(token)
        data = await self.graphql.execute(
            token,
            queries.CREATE_DISCUSSION_MUTATION,
            {"repoId": repo_id, "categoryId": category_id, "title": title, "body": body},
        )
        discussion = data["createDiscussion"]["discussion"]
        self.logger.info("Discussion created", number=discussion["number"])
        return CreatedDiscussion(number=discussion["number"], title=discussion["title"])

    async def add_comment(
        self,
        token: str,
        discussion_id: str,
        body: str,
        reply_to_id: Optional[str] = None,
    ) -> CreatedComment:
        """Comment on a discussion, or reply to a comment when ``reply_to_id`` is set."""
        self._require_user_token(token)
        data = await self.graphql.execute(
            token,
            queries.ADD_COMMENT_MUTATION,
            {"discussionId": discussion_id, "body": body, "replyToId": reply_to_id},
        )
        comment = data["addDiscussionComment"]["comment"]
        return CreatedComment(id=comment["id"], created_at=comment["createdAt"])

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _graphql_read(self, token: str, query: str, variables: Dict[str, Any]) -> Dict[str, Any]:
        async def run(active_token: str) -> Dict[str, Any]:
            return await self.graphql.execute(active_token, query, variables)

        return await self.executor.execute_read(token, run)

    def _repository(self, data: Dict[str, Any]) -> Dict[str, Any]:
        repository = data.get("repository")
        if not repository:
            raise NotFoundError(
                "Repository not found",
                details={"owner": self.config.github_repo_owner, "repo": self.config.github_repo_name},
            )
        return repository

    @staticmethod
    def _require_user_token(token: Optional[str]) -> None:
        if not token:
            raise CredentialUnavailableError("Writing requires the user's own GitHub token")

    def _rest_client(self) -> GitHubRestClient:
        if self._rest is None:
            owner, repo = self.config.require_repository()
            self._rest = GitHubRestClient(
                self.http_client,
                owner,
                repo,
                self.config.github_api_url,
                user_agent=self.config.github_user_agent,
                metrics=self.metrics,
            )
        return self._rest

    async def _rest_categories(self) -> List[Category]:
        """REST has no category listing, so categories are collected from discussions."""
        items, _ = await self._rest_client().list_discussions(page=1)
        categories: Dict[str, Category] = {}
        for item in items:
            raw = item.get("category")
            if not raw:
                continue
            self._category_ids[raw["node_id"]] = raw["id"]
            if raw["node_id"] not in categories:
                categories[raw["node_id"]] = mappers.category_from_rest(raw)
        return list(categories.values())

    async def _rest_category_number(self, category_id: str) -> Optional[int]:
        if category_id.isdigit():
            return int(category_id)
        if category_id not in self._category_ids:
            # the cached category list may have come from GraphQL, which has no numeric ids
            await self._rest_categories()
        return self._category_ids.get(category_id)

    async def _rest_threads(
        self,
        category_id: str,
        first: int,
        after: Optional[str],
        order_by: str,
    ) -> Optional[ThreadPage]:
        """One REST page filtered to the category, or None if the category is unknown."""
        numeric_id = await self._rest_category_number(category_id)
        if numeric_id is None:
            self.logger.info("Unknown category for REST listing", category_id=category_id)
            return None

        page = int(after) if mappers.is_page_cursor(after) else 1
        items, has_next = await self._rest_client().list_discussions(page=page, per_page=first)
        in_category = [item for item in items if (item.get("category") or {}).get("id") == numeric_id]
        in_category.sort(key=lambda item: item.get(ORDER_FIELDS[order_by]) or "", reverse=True)
        return ThreadPage(
            page_info=mappers.rest_page_info(page, has_next),
            nodes=[mappers.thread_summary_from_rest(item) for item in in_category],
        )

    async def _rest_thread(self, number: int) -> Optional[ThreadDetail]:
        rest = self._rest_client()
        item = await rest.get_discussion(number)
        if item is None:
            return None

        try:
            comments = mappers.comments_from_rest(await rest.list_discussion_comments(number))
        except (ForumError, KeyError, TypeError, ValueError) as exc:
            self.logger.warning("Comment fetch failed, returning thread without comments",
                                number=number, error=str(exc))
            comments = []
        return mappers.thread_detail_from_rest(item, comments)
