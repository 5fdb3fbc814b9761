"""サーバー状態のMCPツール定義。"""

from typing import Any

from fastmcp import FastMCP

from ord_mcp.config import SERVER_NAME, SERVER_VERSION
from ord_mcp.models.errors import OrdMcpError
from ord_mcp.services.concepts import ConceptCatalog
from ord_mcp.services.examples import ExampleService
from ord_mcp.services.specification import SpecificationService


def register_status_tools(
    mcp: FastMCP,
    catalog: ConceptCatalog,
    specification_service: SpecificationService,
    example_service: ExampleService,
) -> None:
    """サーバー状態確認用のMCPツールを登録する。"""

    @mcp.tool()
    async def get_status() -> dict[str, Any]:
        """サーバーの状態を取得する。

        仕様書キャッシュの状態と、読み込み済みのコンセプト数・サンプルカテゴリを返します。
        """
        try:
            categories = example_service.list_categories()
        except OrdMcpError as e:
            return {"error": type(e).__name__, "message": str(e)}
        return {
            "status": "ok",
            "server": SERVER_NAME,
            "version": SERVER_VERSION,
            "specification": specification_service.status(),
            "concepts": len(catalog.names),
            "example_categories": categories,
        }
