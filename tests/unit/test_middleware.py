"""TokenAuthMiddlewareのユニットテスト。"""

import pytest
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route
from starlette.testclient import TestClient

from ord_mcp.middleware import TokenAuthMiddleware


async def _ok(request: Request) -> JSONResponse:
    return JSONResponse({"status": "ok"})


def _client(url_token: str) -> TestClient:
    app = Starlette(
        routes=[Route("/mcp", _ok), Route("/health", _ok)],
        middleware=[Middleware(TokenAuthMiddleware, url_token=url_token)],
    )
    return TestClient(app)


class TestTokenAuthMiddleware:
    def test_no_token_configured_allows_all(self) -> None:
        assert _client("").get("/mcp").status_code == 200

    def test_missing_token_is_rejected(self) -> None:
        response = _client("secret").get("/mcp")
        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized", "message": "Invalid or missing token"}

    @pytest.mark.parametrize("token", ["wrong", "secre", "secret2"])
    def test_wrong_token_is_rejected(self, token: str) -> None:
        assert _client("secret").get("/mcp", params={"token": token}).status_code == 401

    def test_query_token(self) -> None:
        assert _client("secret").get("/mcp", params={"token": "secret"}).status_code == 200

    def test_bearer_token(self) -> None:
        response = _client("secret").get("/mcp", headers={"Authorization": "Bearer secret"})
        assert response.status_code == 200

    def test_non_bearer_scheme_is_rejected(self) -> None:
        response = _client("secret").get("/mcp", headers={"Authorization": "Basic secret"})
        assert response.status_code == 401

    def test_health_is_exempt(self) -> None:
        assert _client("secret").get("/health").status_code == 200
