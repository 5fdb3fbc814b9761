"""HTTPトランスポート用のトークン認証ミドルウェア。"""

import hmac
import logging

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

logger = logging.getLogger(__name__)


def _request_token(request: Request) -> str:
    """クエリの token、なければ Authorization: Bearer からトークンを取り出す。"""
    token = request.query_params.get("token")
    if token:
        return token
    scheme, _, credentials = request.headers.get("authorization", "").partition(" ")
    if scheme.lower() == "bearer":
        return credentials.strip()
    return ""


class TokenAuthMiddleware(BaseHTTPMiddleware):
    """ORD_MCP_URL_TOKEN が設定されている場合にトークンの一致を要求する。

    /health は監視用のため認証対象外。
    """

    EXEMPT_PATHS = frozenset({"/health"})

    def __init__(self, app: ASGIApp, url_token: str = "") -> None:
        super().__init__(app)
        self.url_token = url_token

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if not self.url_token or request.url.path in self.EXEMPT_PATHS:
            return await call_next(request)

        if not hmac.compare_digest(_request_token(request).encode(), self.url_token.encode()):
            logger.warning("Rejected request to %s: invalid or missing token", request.url.path)
            return JSONResponse(
                {"error": "Unauthorized", "message": "Invalid or missing token"},
                status_code=401,
            )
        return await call_next(request)
