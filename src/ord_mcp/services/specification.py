"""ORD仕様書の取得とキャッシュを行うサービス。"""

import asyncio
import logging
from datetime import UTC, datetime
from typing import Any

import httpx

from ord_mcp.models.errors import SpecificationFetchError, SpecificationTimeoutError

logger = logging.getLogger(__name__)


class SpecificationService:
    """ORD仕様書（Markdown）をHTTPで取得し、メモリ上にキャッシュする。

    キャッシュが空の場合にのみ取得する。リトライは行わない。
    """

    def __init__(
        self,
        url: str,
        timeout: float,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._url = url
        self._timeout = timeout
        self._transport = transport
        self._cached: str | None = None
        self._fetched_at: datetime | None = None
        self._lock = asyncio.Lock()

    async def get_specification(self, refresh: bool = False) -> str:
        """ORD仕様書を返す。

        Args:
            refresh: Trueの場合はキャッシュを無視して再取得する。

        Raises:
            SpecificationTimeoutError: 取得がタイムアウトした場合。
            SpecificationFetchError: HTTPエラー・通信エラー・空レスポンスの場合。
        """
        async with self._lock:
            if self._cached is not None and not refresh:
                logger.debug("Serving ORD specification from cache")
                return self._cached
            content = await self._fetch()
            self._cached = content
            self._fetched_at = datetime.now(UTC)
            return content

    async def _fetch(self) -> str:
        logger.info("Fetching ORD specification from %s", self._url)
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.get(self._url)
                response.raise_for_status()
        except httpx.TimeoutException as e:
            raise SpecificationTimeoutError(self._timeout) from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            raise SpecificationFetchError(
                f"HTTP {status}: Failed to fetch specification",
                status_code=status,
            ) from e
        except httpx.HTTPError as e:
            raise SpecificationFetchError(f"Network error: {e}") from e

        content = response.text
        if not content.strip():
            raise SpecificationFetchError("Invalid response: expected non-empty specification content")
        logger.info("Fetched ORD specification (%d characters)", len(content))
        return content

    def clear_cache(self) -> None:
        self._cached = None
        self._fetched_at = None

    def status(self) -> dict[str, Any]:
        """キャッシュ状態を返す。"""
        return {
            "url": self._url,
            "cached": self._cached is not None,
            "fetched_at": self._fetched_at.isoformat() if self._fetched_at else None,
            "size": len(self._cached) if self._cached is not None else 0,
        }
