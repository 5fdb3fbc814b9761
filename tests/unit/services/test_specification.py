"""SpecificationServiceのユニットテスト。

HTTP通信は httpx.MockTransport で差し替える。
"""

import httpx
import pytest

from ord_mcp.models.errors import SpecificationFetchError, SpecificationTimeoutError
from ord_mcp.services.specification import SpecificationService

SPEC_URL = "https://spec.example.com/ord/index.md"
SPEC_BODY = "# Open Resource Discovery\n\nSpecification body."


class _CountingHandler:
    def __init__(self, status_code: int = 200, text: str = SPEC_BODY) -> None:
        self.status_code = status_code
        self.text = text
        self.calls = 0

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls += 1
        return httpx.Response(self.status_code, text=self.text)


def _service(handler) -> SpecificationService:
    return SpecificationService(url=SPEC_URL, timeout=2.0, transport=httpx.MockTransport(handler))


class TestGetSpecification:
    async def test_fetches_content(self) -> None:
        handler = _CountingHandler()
        service = _service(handler)
        assert await service.get_specification() == SPEC_BODY
        assert handler.calls == 1

    async def test_requests_configured_url(self) -> None:
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(str(request.url))
            return httpx.Response(200, text=SPEC_BODY)

        await _service(handler).get_specification()
        assert seen == [SPEC_URL]

    async def test_second_call_uses_cache(self) -> None:
        handler = _CountingHandler()
        service = _service(handler)
        await service.get_specification()
        assert await service.get_specification() == SPEC_BODY
        assert handler.calls == 1

    async def test_refresh_bypasses_cache(self) -> None:
        handler = _CountingHandler()
        service = _service(handler)
        await service.get_specification()
        handler.text = "# Updated"
        assert await service.get_specification(refresh=True) == "# Updated"
        assert await service.get_specification() == "# Updated"
        assert handler.calls == 2

    async def test_clear_cache(self) -> None:
        handler = _CountingHandler()
        service = _service(handler)
        await service.get_specification()
        service.clear_cache()
        assert service.status()["cached"] is False
        await service.get_specification()
        assert handler.calls == 2


class TestFetchErrors:
    async def test_http_error_status(self) -> None:
        service = _service(_CountingHandler(status_code=404, text="not found"))
        with pytest.raises(SpecificationFetchError) as exc_info:
            await service.get_specification()
        assert exc_info.value.status_code == 404
        assert str(exc_info.value) == "HTTP 404: Failed to fetch specification"

    async def test_timeout(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(SpecificationTimeoutError) as exc_info:
            await _service(handler).get_specification()
        assert exc_info.value.timeout == 2.0
        assert "Request timeout after 2s" in str(exc_info.value)

    async def test_network_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(SpecificationFetchError, match="Network error"):
            await _service(handler).get_specification()

    @pytest.mark.parametrize("body", ["", "   \n"])
    async def test_empty_body(self, body: str) -> None:
        with pytest.raises(SpecificationFetchError, match="non-empty"):
            await _service(_CountingHandler(text=body)).get_specification()

    async def test_failure_does_not_populate_cache(self) -> None:
        handler = _CountingHandler(status_code=500)
        service = _service(handler)
        with pytest.raises(SpecificationFetchError):
            await service.get_specification()
        handler.status_code = 200
        assert await service.get_specification() == SPEC_BODY
        assert handler.calls == 2


class TestStatus:
    async def test_status_before_and_after_fetch(self) -> None:
        service = _service(_CountingHandler())
        assert service.status() == {"url": SPEC_URL, "cached": False, "fetched_at": None, "size": 0}
        await service.get_specification()
        status = service.status()
        assert status["cached"] is True
        assert status["size"] == len(SPEC_BODY)
        assert status["fetched_at"] is not None
