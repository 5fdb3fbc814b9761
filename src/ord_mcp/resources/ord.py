"""ORD関連のMCPリソース定義。"""

from fastmcp import FastMCP

from ord_mcp.formatters.markdown import format_example_category
from ord_mcp.services.concepts import ConceptCatalog
from ord_mcp.services.examples import ExampleService
from ord_mcp.services.specification import SpecificationService


def register_ord_resources(
    mcp: FastMCP,
    catalog: ConceptCatalog,
    specification_service: SpecificationService,
    example_service: ExampleService,
) -> None:
    """ORD関連のMCPリソースを登録する。"""

    @mcp.resource("ord://specification/latest", mime_type="text/markdown")
    async def specification_latest() -> str:
        """最新のORD仕様書を取得する。"""
        return await specification_service.get_specification()

    @mcp.resource("ord://documentation/concepts", mime_type="text/markdown")
    async def concepts_overview() -> str:
        """全ORDコンセプトの概要を取得する。

        コンセプトごとの説明と必須プロパティを返します。
        """
        return catalog.overview()

    @mcp.resource("ord://concept/{concept_name}", mime_type="text/markdown")
    async def concept_documentation(concept_name: str) -> str:
        """指定したORDコンセプトの説明を取得する。"""
        return catalog.explain(concept_name)

    @mcp.resource("ord://examples/{category}", mime_type="text/markdown")
    async def examples_by_category(category: str) -> str:
        """カテゴリ別のORDサンプルを取得する。

        カテゴリ: rest-api, odata-service, event, consumption-bundle
        """
        return format_example_category(example_service.get_category(category))
