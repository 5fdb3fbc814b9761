"""ORDメタデータ検証のMCPツール定義。"""

from typing import Any

from fastmcp import FastMCP

from ord_mcp.formatters.markdown import format_validation_report
from ord_mcp.models.errors import InvalidArgumentError, OrdMcpError
from ord_mcp.validators.metadata import MetadataValidator, load_metadata_file


def register_metadata_tools(mcp: FastMCP, validator: MetadataValidator) -> None:
    """メタデータ検証関連のMCPツールを登録する。"""

    @mcp.tool()
    async def validate_ord_metadata(
        metadata: dict[str, Any] | None = None,
        metadata_path: str | None = None,
        strict: bool = False,
    ) -> dict[str, Any]:
        """ORDメタデータを検証する。

        構造・必須フィールド・書式・ORD ID参照の整合性を検査し、
        errors / warnings / suggestions とMarkdownレポートを返します。
        package.json を指定した場合は "open-resource-discovery" セクションを検証します。

        Args:
            metadata: 検証対象のメタデータ（metadata_pathと排他）。
            metadata_path: メタデータJSONファイルのパス。
            strict: Trueの場合はベストプラクティスの提案も出力する。
        """
        try:
            if (metadata is None) == (metadata_path is None):
                raise InvalidArgumentError("Exactly one of metadata or metadata_path must be provided")
            document = load_metadata_file(metadata_path) if metadata_path is not None else metadata
            result = validator.validate(document, strict=strict)
        except OrdMcpError as e:
            return {"error": type(e).__name__, "message": str(e)}
        return {**result.model_dump(mode="json"), "markdown": format_validation_report(result)}
