"""ORDコンセプト関連のMCPツール定義。"""

from typing import Any

from fastmcp import FastMCP

from ord_mcp.models.errors import OrdMcpError
from ord_mcp.services.concepts import ConceptCatalog


def register_concept_tools(mcp: FastMCP, catalog: ConceptCatalog) -> None:
    """ORDコンセプト関連のMCPツールを登録する。"""

    @mcp.tool()
    async def list_ord_concepts() -> dict[str, Any]:
        """ORDコンセプトの一覧を取得する。

        explain_ord_concept に指定できるコンセプト名と概要を返します。
        """
        concepts = catalog.list_concepts()
        return {"concepts": concepts, "total": len(concepts)}

    @mcp.tool()
    async def explain_ord_concept(concept: str) -> dict[str, Any]:
        """ORDコンセプトを説明する。

        説明・必須/任意プロパティ・JSONの例をMarkdownで返します。
        コンセプト名は大文字小文字を区別しません（例: "product", "APIResource"）。

        Args:
            concept: コンセプト名。
        """
        try:
            canonical = catalog.resolve(concept)
            return {"concept": canonical, "text": catalog.explain(canonical)}
        except OrdMcpError as e:
            return {"error": type(e).__name__, "message": str(e)}
