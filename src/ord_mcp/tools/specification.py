"""ORD仕様書のMCPツール定義。"""

from typing import Any

from fastmcp import FastMCP

from ord_mcp.models.errors import OrdMcpError
from ord_mcp.services.specification import SpecificationService


def register_specification_tools(mcp: FastMCP, specification_service: SpecificationService) -> None:
    """ORD仕様書関連のMCPツールを登録する。"""

    @mcp.tool()
    async def get_ord_specification(refresh: bool = False) -> dict[str, Any]:
        """最新のORD仕様書（Markdown）を取得する。

        初回取得後はサーバー内にキャッシュされます。

        Args:
            refresh: Trueの場合はキャッシュを使わずに再取得する。
        """
        try:
            content = await specification_service.get_specification(refresh=refresh)
        except OrdMcpError as e:
            return {"error": type(e).__name__, "message": str(e)}
        status = specification_service.status()
        return {
            "source": status["url"],
            "fetched_at": status["fetched_at"],
            "content": f"# ORD Specification (Latest)\n\n{content}",
        }
