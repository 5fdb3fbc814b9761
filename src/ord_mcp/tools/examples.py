"""ORDサンプルのMCPツール定義。"""

from typing import Any

from fastmcp import FastMCP

from ord_mcp.formatters.markdown import format_examples
from ord_mcp.models.errors import OrdMcpError
from ord_mcp.services.examples import ExampleService


def register_example_tools(mcp: FastMCP, example_service: ExampleService) -> None:
    """サンプル関連のMCPツールを登録する。"""

    @mcp.tool()
    async def get_ord_examples(
        use_case: str,
        service_type: str = "generic",
        complexity: str = "moderate",
    ) -> dict[str, Any]:
        """ユースケースに合ったORDアノテーションのサンプルを取得する。

        Args:
            use_case: ユースケース（例: "rest api", "event", "consumption bundle"）。
            service_type: "odata"、"rest"、"event"、"generic" のいずれか。
            complexity: "simple"、"moderate"、"complex" のいずれか。
        """
        try:
            result = example_service.get_examples(use_case, service_type, complexity)
        except OrdMcpError as e:
            return {"error": type(e).__name__, "message": str(e)}
        return {**result.model_dump(mode="json"), "markdown": format_examples(result)}
