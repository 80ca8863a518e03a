"""
Forum service for Gitorum.

Composition root: owns the process-wide HTTP client, response cache and
installation token broker, and exposes the discussions service as a thin
JSON API for the page layer.
"""

from typing import Any, Dict, Optional

import httpx
from fastapi import Depends, Query, Response
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from shared.base_service import BaseService
from shared.config import ForumConfig
from shared.errors import CredentialUnavailableError, NotFoundError
from shared.logging import set_user_context

from .auth import InstallationTokenBroker
from .caching import ResponseCache
from .discussions import DiscussionsService

THREAD_CACHE_CONTROL = "public, max-age=60, s-maxage=60, stale-while-revalidate=120"

bearer_scheme = HTTPBearer(auto_error=False)


class RequestModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, str_strip_whitespace=True)


class NewThreadRequest(RequestModel):
    category_id: str = Field(min_length=1)
    title: str = Field(min_length=1)
    body: str = Field(min_length=1)


class NewCommentRequest(RequestModel):
    body: str = Field(min_length=1)
    reply_to_id: Optional[str] = None


def user_token(credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)) -> Optional[str]:
    """The end user's own GitHub token, if the page layer forwarded one."""
    if credentials is None or not credentials.credentials:
        return None
    return credentials.credentials


def required_user_token(token: Optional[str] = Depends(user_token)) -> str:
    if not token:
        raise CredentialUnavailableError()
    return token


def _dump(model: Optional[BaseModel]) -> Optional[Dict[str, Any]]:
    return model.model_dump(by_alias=True) if model is not None else None


class ForumService(BaseService):
    """Forum service implementation."""

    def __init__(self, config: Optional[ForumConfig] = None, http_client: Optional[httpx.AsyncClient] = None):
        super().__init__("forum", config)

        self.http_client = http_client or httpx.AsyncClient(timeout=self.config.github_http_timeout)
        self.cache = ResponseCache(metrics=self.metrics)
        self.token_broker = InstallationTokenBroker(self.config, self.http_client, metrics=self.metrics)
        self.discussions = DiscussionsService(
            self.config,
            self.http_client,
            cache=self.cache,
            broker=self.token_broker,
            metrics=self.metrics,
        )

        self._setup_forum_routes()

    async def shutdown(self) -> None:
        await self.http_client.aclose()

    async def _check_dependencies(self) -> Dict[str, Any]:
        return {
            "github_app": "configured" if self.token_broker.is_configured else "absent",
            "server_token": "configured" if self.config.github_server_token else "absent",
            "cached_responses": len(self.cache),
        }

    def _setup_forum_routes(self):
        """Set up forum routes."""
        discussions = self.discussions

        @self.app.get("/")
        async def root():
            return {
                "service": "forum",
                "message": f"{self.config.forum_title} - Forum Service",
                "version": "1.0.0",
                "anonymous": not await discussions.has_server_credential(),
            }

        @self.app.get("/categories")
        async def list_categories(token: Optional[str] = Depends(user_token)):
            categories = await discussions.fetch_categories(token)
            return [_dump(category) for category in categories]

        @self.app.get("/categories/{slug}")
        async def get_category(slug: str, token: Optional[str] = Depends(user_token)):
            category = await discussions.fetch_category_by_slug(slug, token)
            if category is None:
                raise NotFoundError("Category not found", details={"slug": slug})
            return _dump(category)

        @self.app.get("/categories/{slug}/threads")
        async def list_threads(
            slug: str,
            after: Optional[str] = None,
            sort: str = "UPDATED_AT",
            first: int = Query(20, ge=1, le=100),
            token: Optional[str] = Depends(user_token),
        ):
            category = await discussions.fetch_category_by_slug(slug, token)
            if category is None:
                raise NotFoundError("Category not found", details={"slug": slug})

            order_by = "CREATED_AT" if sort == "CREATED_AT" else "UPDATED_AT"
            page = await discussions.fetch_threads_by_category(category.id, first, after, order_by, token)
            return {
                "category": _dump(category),
                "threads": [_dump(thread) for thread in page.nodes],
                "pageInfo": _dump(page.page_info),
                "sort": order_by,
            }

        @self.app.get("/threads/{number}")
        async def get_thread(number: int, response: Response, token: Optional[str] = Depends(user_token)):
            thread = await discussions.fetch_thread(number, token)
            if thread is None:
                raise NotFoundError("Thread not found", details={"number": number})
            response.headers["Cache-Control"] = THREAD_CACHE_CONTROL
            return _dump(thread)

        @self.app.get("/search")
        async def search(
            q: str = "",
            after: Optional[str] = None,
            token: Optional[str] = Depends(user_token),
        ):
            query = q.strip()
            empty = {"query": q, "results": [], "pageInfo": None, "totalCount": 0}
            if not query:
                return empty

            results = await discussions.search_discussions(query, 20, after, token)
            if results is None:
                return empty
            return {
                "query": q,
                "results": [_dump(thread) for thread in results.nodes],
                "pageInfo": _dump(results.page_info),
                "totalCount": results.discussion_count,
            }

        @self.app.get("/viewer")
        async def viewer(token: str = Depends(required_user_token)):
            current = await discussions.fetch_viewer(token)
            if current is None:
                raise CredentialUnavailableError("GitHub rejected the supplied token")
            set_user_context(current.login)
            return _dump(current)

        @self.app.post("/threads", status_code=201)
        async def create_thread(request: NewThreadRequest, token: str = Depends(required_user_token)):
            repo_id = await discussions.fetch_repo_id(token)
            created = await discussions.create_discussion(
                token, repo_id, request.category_id, request.title, request.body
            )
            return _dump(created)

        @self.app.post("/threads/{discussion_id}/comments", status_code=201)
        async def create_comment(
            discussion_id: str,
            request: NewCommentRequest,
            token: str = Depends(required_user_token),
        ):
            created = await discussions.add_comment(token, discussion_id, request.body, request.reply_to_id)
            return _dump(created)


def create_app(config: Optional[ForumConfig] = None, http_client: Optional[httpx.AsyncClient] = None):
    """Create FastAPI application."""
    service = ForumService(config, http_client)
    return service.app


if __name__ == "__main__":
    service = ForumService()
    service.run()
