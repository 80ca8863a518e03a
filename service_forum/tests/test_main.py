"""
Unit tests for the forum service HTTP surface.
"""

import httpx
import pytest
from unittest.mock import patch
from fastapi.testclient import TestClient

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from service_forum.app.main import ForumService, create_app
from shared.config import ForumConfig


class FakeGraphQL:
    """MockTransport handler answering GraphQL posts from a queue."""

    def __init__(self):
        self.responses = []
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responses.pop(0)


CATEGORIES = {"repository": {"discussionCategories": {"nodes": [
    {"id": "DIC_1", "name": "General", "description": "Chat", "emoji": ":speech_balloon:", "slug": "general"},
]}}}


def forum_config(**overrides) -> ForumConfig:
    values = dict(github_repo_owner="acme", github_repo_name="forum", github_server_token="ghp_server")
    values.update(overrides)
    return ForumConfig(_env_file=None, **values)


class TestForumService:
    """Test cases for ForumService."""

    @pytest.fixture
    def github(self):
        return FakeGraphQL()

    @pytest.fixture
    def service(self, github):
        return ForumService(forum_config(), httpx.AsyncClient(transport=httpx.MockTransport(github)))

    @pytest.fixture
    def client(self, service):
        return TestClient(service.app)

    def test_root_endpoint(self, client):
        response = client.get("/")
        assert response.status_code == 200
        data = response.json()
        assert data["service"] == "forum"
        assert data["anonymous"] is False

    def test_health_endpoint(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["dependencies"]["server_token"] == "configured"
        assert data["dependencies"]["github_app"] == "absent"

    def test_metrics_endpoint(self, client):
        response = client.get("/metrics")
        assert response.status_code == 200
        assert "http_requests_total" in response.text

    def test_list_categories(self, client, github):
        github.responses.append(httpx.Response(200, json={"data": CATEGORIES}))

        response = client.get("/categories")

        assert response.status_code == 200
        assert response.json() == [
            {"id": "DIC_1", "name": "General", "description": "Chat", "emoji": "💬", "slug": "general"}
        ]

    def test_unknown_category_is_404(self, client, github):
        github.responses.append(httpx.Response(200, json={"data": CATEGORIES}))

        response = client.get("/categories/nope/threads")

        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"

    def test_thread_sets_cache_headers(self, client, github):
        github.responses.append(httpx.Response(200, json={"data": {"repository": {"discussion": {
            "id": "D_1", "number": 1, "title": "Hello", "body": "hi", "bodyHTML": "<p>hi</p>",
            "createdAt": "2024-01-01T00:00:00Z", "author": None, "category": None,
            "reactions": {"totalCount": 0, "nodes": []},
            "comments": {"totalCount": 0, "pageInfo": {"hasNextPage": False, "endCursor": None}, "nodes": []},
        }}}}))

        response = client.get("/threads/1")

        assert response.status_code == 200
        assert response.json()["bodyHTML"] == "<p>hi</p>"
        assert "max-age=60" in response.headers["Cache-Control"]

    def test_rate_limit_renders_503(self, client, github):
        github.responses.append(httpx.Response(200, json={
            "data": None, "errors": [{"type": "RATE_LIMITED", "message": "API rate limit exceeded"}],
        }))

        response = client.get("/threads/1")

        assert response.status_code == 503
        assert response.json()["code"] == "RATE_LIMITED"

    def test_blank_search_makes_no_request(self, client, github):
        response = client.get("/search", params={"q": "   "})

        assert response.status_code == 200
        assert response.json()["results"] == []
        assert github.requests == []

    def test_create_thread_requires_token(self, client, github):
        response = client.post("/threads", json={"categoryId": "DIC_1", "title": "Hi", "body": "There"})

        assert response.status_code == 401
        assert response.json()["code"] == "CREDENTIAL_UNAVAILABLE"
        assert github.requests == []

    def test_create_thread_rejects_blank_title(self, client):
        response = client.post(
            "/threads",
            json={"categoryId": "DIC_1", "title": "   ", "body": "There"},
            headers={"Authorization": "Bearer gho_user"},
        )

        assert response.status_code == 422

    def test_create_thread(self, client, github):
        github.responses.append(httpx.Response(200, json={"data": {"repository": {"id": "R_acme"}}}))
        github.responses.append(httpx.Response(200, json={
            "data": {"createDiscussion": {"discussion": {"number": 7, "title": "Hi"}}},
        }))

        response = client.post(
            "/threads",
            json={"categoryId": "DIC_1", "title": "Hi", "body": "There"},
            headers={"Authorization": "Bearer gho_user"},
        )

        assert response.status_code == 201
        assert response.json() == {"number": 7, "title": "Hi"}
        assert github.requests[1].headers["Authorization"] == "bearer gho_user"

    def test_reply_to_comment(self, client, github):
        github.responses.append(httpx.Response(200, json={
            "data": {"addDiscussionComment": {"comment": {"id": "DC_2", "createdAt": "2024-01-01T00:00:00Z"}}},
        }))

        response = client.post(
            "/threads/D_1/comments",
            json={"body": "Agreed", "replyToId": "DC_1"},
            headers={"Authorization": "Bearer gho_user"},
        )

        assert response.status_code == 201
        assert response.json()["id"] == "DC_2"

    def test_viewer(self, client, github):
        github.responses.append(httpx.Response(200, json={
            "data": {"viewer": {"login": "octocat", "avatarUrl": "https://avatars.test/octocat"}},
        }))

        response = client.get("/viewer", headers={"Authorization": "Bearer gho_user"})

        assert response.status_code == 200
        assert response.json() == {"login": "octocat", "avatarUrl": "https://avatars.test/octocat"}


    def test_context_cleared_when_route_raises(self, service):
        @service.app.get("/boom")
        async def boom():
            raise RuntimeError("boom")

        client = TestClient(service.app, raise_server_exceptions=False)
        with patch("shared.base_service.clear_context") as mock_clear:
            response = client.get("/boom")

        assert response.status_code == 500
        mock_clear.assert_called_once()

    def test_context_cleared_after_request(self, client):
        with patch("shared.base_service.clear_context") as mock_clear:
            client.get("/health")

        mock_clear.assert_called_once()


class TestCreateApp:
    """Test cases for the app factory."""

    def test_missing_repository_renders_configuration_error(self):
        app = create_app(forum_config(github_repo_owner=None))
        client = TestClient(app)

        response = client.get("/categories")

        assert response.status_code == 500
        assert response.json()["code"] == "CONFIGURATION_ERROR"
        assert "GITHUB_REPO_OWNER" in response.json()["message"]
