"""CAPプロジェクト解析のMCPツール定義。"""

from typing import Any

from fastmcp import FastMCP

from ord_mcp.formatters.markdown import format_project_analysis
from ord_mcp.models.errors import OrdMcpError
from ord_mcp.services.project import ProjectService


def register_project_tools(mcp: FastMCP, project_service: ProjectService) -> None:
    """プロジェクト解析関連のMCPツールを登録する。"""

    @mcp.tool()
    async def analyze_cap_project(
        project_path: str,
        include_files: list[str] | None = None,
        suggestion_level: str = "detailed",
    ) -> dict[str, Any]:
        """CAPプロジェクトを解析し、ORD対応の改善提案を返す。

        .cds / .json / .js / .ts ファイルを走査し、サービス定義と
        package.json の "open-resource-discovery" セクションを検査します。

        Args:
            project_path: プロジェクトのルートディレクトリ。
            include_files: 解析対象を限定するファイルパスのリスト（任意）。
            suggestion_level: "basic"、"detailed"、"comprehensive" のいずれか。
        """
        try:
            analysis = await project_service.analyze_project(project_path, include_files, suggestion_level)
        except OrdMcpError as e:
            return {"error": type(e).__name__, "message": str(e)}
        return {**analysis.model_dump(mode="json"), "markdown": format_project_analysis(analysis)}
