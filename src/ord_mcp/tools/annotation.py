"""ORDアノテーション生成のMCPツール定義。"""

from typing import Any

from fastmcp import FastMCP

from ord_mcp.formatters.markdown import format_annotation_result
from ord_mcp.models.errors import OrdMcpError
from ord_mcp.services.annotation import AnnotationService


def register_annotation_tools(mcp: FastMCP, annotation_service: AnnotationService) -> None:
    """アノテーション生成関連のMCPツールを登録する。"""

    @mcp.tool()
    async def generate_ord_annotation(
        service_definition: str | None = None,
        service_path: str | None = None,
        annotation_type: str = "basic",
    ) -> dict[str, Any]:
        """CAPサービス定義から @ORD.Extensions アノテーションを生成する。

        service_definition（CDSソース）か service_path（.cdsファイル）のどちらか一方を指定してください。
        annotation_type が "comprehensive" の場合は package.json 用のORDメタデータも生成します。

        Args:
            service_definition: CDSソース文字列。
            service_path: .cdsファイルのパス。
            annotation_type: "basic"、"comprehensive"、"minimal" のいずれか。
        """
        try:
            result = annotation_service.generate(
                service_definition=service_definition,
                service_path=service_path,
                annotation_type=annotation_type,
            )
        except OrdMcpError as e:
            return {"error": type(e).__name__, "message": str(e)}
        return {**result.model_dump(mode="json"), "markdown": format_annotation_result(result)}
