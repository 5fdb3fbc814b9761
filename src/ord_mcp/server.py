"""FastMCPベースのMCPサーバーエントリポイント。"""

import logging

import httpx
from fastmcp import FastMCP
from starlette.requests import Request
from starlette.responses import JSONResponse

from ord_mcp.config import SERVER_NAME, SERVER_VERSION, ServerConfig
from ord_mcp.prompts.workflow import register_workflow_prompts
from ord_mcp.resources.ord import register_ord_resources
from ord_mcp.services.annotation import AnnotationService
from ord_mcp.services.concepts import ConceptCatalog
from ord_mcp.services.examples import ExampleService
from ord_mcp.services.project import ProjectService
from ord_mcp.services.specification import SpecificationService
from ord_mcp.tools.annotation import register_annotation_tools
from ord_mcp.tools.concepts import register_concept_tools
from ord_mcp.tools.examples import register_example_tools
from ord_mcp.tools.metadata import register_metadata_tools
from ord_mcp.tools.project import register_project_tools
from ord_mcp.tools.specification import register_specification_tools
from ord_mcp.tools.status import register_status_tools
from ord_mcp.validators.metadata import MetadataValidator

logger = logging.getLogger(__name__)


def create_server(
    config: ServerConfig | None = None,
    http_transport: httpx.AsyncBaseTransport | None = None,
) -> FastMCP:
    """ORD MCPサーバーを作成し、ツール・リソース・プロンプトを登録する。

    Args:
        config: サーバー設定。Noneの場合はデフォルト設定を使用。
        http_transport: 仕様書取得に使うHTTPトランスポート（テスト用の差し替え）。

    Returns:
        設定済みのFastMCPインスタンス。

    Raises:
        CatalogError: コンセプト定義を読み込めない場合。
    """
    if config is None:
        config = ServerConfig()

    mcp = FastMCP(SERVER_NAME)

    # 静的データ・サービス層
    catalog = ConceptCatalog.from_yaml(config.config_dir)
    validator = MetadataValidator()
    specification_service = SpecificationService(
        url=config.specification_url,
        timeout=config.request_timeout,
        transport=http_transport,
    )
    example_service = ExampleService(config_dir=config.config_dir)
    annotation_service = AnnotationService()
    project_service = ProjectService(
        validator=validator,
        scan_timeout=config.project_scan_timeout,
        max_files=config.max_project_files,
    )

    # MCPインターフェース登録: ツール
    register_status_tools(mcp, catalog, specification_service, example_service)
    register_specification_tools(mcp, specification_service)
    register_concept_tools(mcp, catalog)
    register_annotation_tools(mcp, annotation_service)
    register_metadata_tools(mcp, validator)
    register_project_tools(mcp, project_service)
    register_example_tools(mcp, example_service)

    # MCPインターフェース登録: リソース・プロンプト
    register_ord_resources(mcp, catalog, specification_service, example_service)
    register_workflow_prompts(mcp)

    # ヘルスチェックエンドポイント
    @mcp.custom_route("/health", methods=["GET"])
    async def health_check(request: Request) -> JSONResponse:
        return JSONResponse(
            {
                "status": "ok",
                "version": SERVER_VERSION,
                "specification_cached": specification_service.status()["cached"],
            }
        )

    logger.info("ORD MCP server created (config_dir=%s)", config.config_dir)
    return mcp
