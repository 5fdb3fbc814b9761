"""ORD MCPサーバーのMCPプロトコル経由統合テスト。"""

import json
from pathlib import Path
from typing import Any

import httpx
import pytest
from fastmcp import Client

from ord_mcp.config import ServerConfig
from ord_mcp.server import create_server

SPEC_BODY = "# Open Resource Discovery\n\nThe ORD specification."

EXPECTED_TOOLS = {
    "get_status",
    "get_ord_specification",
    "list_ord_concepts",
    "explain_ord_concept",
    "generate_ord_annotation",
    "validate_ord_metadata",
    "analyze_cap_project",
    "get_ord_examples",
}


class _SpecHandler:
    def __init__(self) -> None:
        self.calls = 0
        self.status_code = 200

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls += 1
        return httpx.Response(self.status_code, text=SPEC_BODY)


@pytest.fixture
def spec_handler() -> _SpecHandler:
    return _SpecHandler()


@pytest.fixture
def mcp_server(server_config: ServerConfig, spec_handler: _SpecHandler) -> object:
    """テスト用MCPサーバー。仕様書の取得先はモックに差し替える。"""
    return create_server(server_config, http_transport=httpx.MockTransport(spec_handler))


def parse_tool_result(result: object) -> dict:
    """CallToolResultからJSONデータを抽出する。"""
    content = result.content  # type: ignore[union-attr]
    assert len(content) > 0
    return json.loads(content[0].text)  # type: ignore[union-attr]


class TestServerSurface:
    async def test_list_tools_via_mcp(self, mcp_server: object) -> None:
        async with Client(mcp_server) as client:  # type: ignore[arg-type]
            tools = await client.list_tools()
            assert {t.name for t in tools} == EXPECTED_TOOLS

    async def test_list_resources_via_mcp(self, mcp_server: object) -> None:
        async with Client(mcp_server) as client:  # type: ignore[arg-type]
            resources = await client.list_resources()
            uris = {str(r.uri) for r in resources}
            assert "ord://specification/latest" in uris
            assert "ord://documentation/concepts" in uris

            templates = await client.list_resource_templates()
            template_uris = {t.uriTemplate for t in templates}
            assert "ord://concept/{concept_name}" in template_uris
            assert "ord://examples/{category}" in template_uris

    async def test_list_prompts_via_mcp(self, mcp_server: object) -> None:
        async with Client(mcp_server) as client:  # type: ignore[arg-type]
            prompts = await client.list_prompts()
            assert {"annotate_cap_service", "review_ord_metadata"} <= {p.name for p in prompts}

    async def test_status_via_mcp(self, mcp_server: object) -> None:
        async with Client(mcp_server) as client:  # type: ignore[arg-type]
            data = parse_tool_result(await client.call_tool("get_status", {}))
            assert data["status"] == "ok"
            assert data["server"] == "ord-mcp"
            assert data["concepts"] == 14
            assert data["specification"]["cached"] is False
            assert "rest api" in data["example_categories"]


class TestConceptTools:
    async def test_list_concepts_via_mcp(self, mcp_server: object) -> None:
        async with Client(mcp_server) as client:  # type: ignore[arg-type]
            data = parse_tool_result(await client.call_tool("list_ord_concepts", {}))
            assert data["total"] == 14
            assert data["concepts"][0]["name"] == "DocumentProperties"

    async def test_explain_concept_via_mcp(self, mcp_server: object) -> None:
        async with Client(mcp_server) as client:  # type: ignore[arg-type]
            data = parse_tool_result(await client.call_tool("explain_ord_concept", {"concept": "consumptionbundle"}))
            assert data["concept"] == "ConsumptionBundle"
            assert data["text"].startswith("# ORD Concept: ConsumptionBundle")

    async def test_unknown_concept_returns_error_dict(self, mcp_server: object) -> None:
        async with Client(mcp_server) as client:  # type: ignore[arg-type]
            result = await client.call_tool("explain_ord_concept", {"concept": "Widget"}, raise_on_error=False)
            data = parse_tool_result(result)
            assert data["error"] == "UnknownConceptError"
            assert "Available concepts:" in data["message"]

    async def test_blank_concept_returns_error_dict(self, mcp_server: object) -> None:
        async with Client(mcp_server) as client:  # type: ignore[arg-type]
            result = await client.call_tool("explain_ord_concept", {"concept": "   "}, raise_on_error=False)
            assert parse_tool_result(result)["error"] == "InvalidArgumentError"


class TestSpecificationTool:
    async def test_fetch_and_cache_via_mcp(self, mcp_server: object, spec_handler: _SpecHandler) -> None:
        async with Client(mcp_server) as client:  # type: ignore[arg-type]
            data = parse_tool_result(await client.call_tool("get_ord_specification", {}))
            assert data["content"] == f"# ORD Specification (Latest)\n\n{SPEC_BODY}"
            assert data["source"] == "https://spec.example.com/ord/index.md"
            assert data["fetched_at"] is not None

            await client.call_tool("get_ord_specification", {})
            assert spec_handler.calls == 1

            await client.call_tool("get_ord_specification", {"refresh": True})
            assert spec_handler.calls == 2

    async def test_fetch_error_via_mcp(self, mcp_server: object, spec_handler: _SpecHandler) -> None:
        spec_handler.status_code = 503
        async with Client(mcp_server) as client:  # type: ignore[arg-type]
            result = await client.call_tool("get_ord_specification", {}, raise_on_error=False)
            data = parse_tool_result(result)
            assert data["error"] == "SpecificationFetchError"
            assert data["message"] == "HTTP 503: Failed to fetch specification"

    async def test_specification_resource_via_mcp(self, mcp_server: object) -> None:
        async with Client(mcp_server) as client:  # type: ignore[arg-type]
            contents = await client.read_resource("ord://specification/latest")
            assert contents[0].text == SPEC_BODY  # type: ignore[union-attr]


class TestMetadataTool:
    async def test_validate_inline_metadata_via_mcp(self, mcp_server: object, valid_metadata: dict) -> None:
        async with Client(mcp_server) as client:  # type: ignore[arg-type]
            data = parse_tool_result(await client.call_tool("validate_ord_metadata", {"metadata": valid_metadata}))
            assert data["valid"] is True
            assert data["errors"] == []
            assert data["markdown"].startswith("# ORD Metadata Validation Report")

    async def test_validate_file_via_mcp(self, mcp_server: object, valid_metadata: dict, tmp_path: Path) -> None:
        valid_metadata["products"][0]["ordId"] = "not-a-valid-id"
        path = tmp_path / "package.json"
        path.write_text(json.dumps({"name": "app", "open-resource-discovery": valid_metadata}), encoding="utf-8")
        async with Client(mcp_server) as client:  # type: ignore[arg-type]
            data = parse_tool_result(
                await client.call_tool("validate_ord_metadata", {"metadata_path": str(path), "strict": True})
            )
            assert data["valid"] is False
            assert data["validation_level"] == "strict"
            assert data["errors"][0]["property"] == "ordId"
            assert len(data["suggestions"]) == 3

    async def test_validate_requires_one_input(self, mcp_server: object) -> None:
        async with Client(mcp_server) as client:  # type: ignore[arg-type]
            result = await client.call_tool("validate_ord_metadata", {}, raise_on_error=False)
            assert parse_tool_result(result)["error"] == "InvalidArgumentError"

    async def test_validate_missing_file(self, mcp_server: object, tmp_path: Path) -> None:
        async with Client(mcp_server) as client:  # type: ignore[arg-type]
            result = await client.call_tool(
                "validate_ord_metadata", {"metadata_path": str(tmp_path / "none.json")}, raise_on_error=False
            )
            assert parse_tool_result(result)["error"] == "FileReadError"


class TestAnnotationAndProjectTools:
    async def test_generate_annotation_via_mcp(self, mcp_server: object, sample_cds: str) -> None:
        async with Client(mcp_server) as client:  # type: ignore[arg-type]
            data = parse_tool_result(
                await client.call_tool(
                    "generate_ord_annotation",
                    {"service_definition": sample_cds, "annotation_type": "comprehensive"},
                )
            )
            assert data["annotation_type"] == "comprehensive"
            assert data["services"][0]["service_name"] == "CatalogService"
            assert "open-resource-discovery" in data["package_json"]
            assert "## Service: CatalogService" in data["markdown"]

    async def test_generate_then_validate_via_mcp(self, mcp_server: object, sample_cds: str) -> None:
        async with Client(mcp_server) as client:  # type: ignore[arg-type]
            generated = parse_tool_result(
                await client.call_tool(
                    "generate_ord_annotation",
                    {"service_definition": sample_cds, "annotation_type": "comprehensive"},
                )
            )
            section: dict[str, Any] = generated["package_json"]["open-resource-discovery"]
            data = parse_tool_result(await client.call_tool("validate_ord_metadata", {"metadata": section}))
            assert data["valid"] is True

    async def test_generate_invalid_type_via_mcp(self, mcp_server: object) -> None:
        async with Client(mcp_server) as client:  # type: ignore[arg-type]
            result = await client.call_tool(
                "generate_ord_annotation",
                {"service_definition": "service A {}", "annotation_type": "full"},
                raise_on_error=False,
            )
            assert parse_tool_result(result)["error"] == "InvalidArgumentError"

    async def test_analyze_project_via_mcp(self, mcp_server: object, sample_cds: str, tmp_path: Path) -> None:
        (tmp_path / "srv").mkdir()
        (tmp_path / "srv" / "cat-service.cds").write_text(sample_cds, encoding="utf-8")
        (tmp_path / "package.json").write_text(json.dumps({"dependencies": {"@sap/cds": "^7"}}), encoding="utf-8")
        async with Client(mcp_server) as client:  # type: ignore[arg-type]
            data = parse_tool_result(
                await client.call_tool(
                    "analyze_cap_project", {"project_path": str(tmp_path), "suggestion_level": "basic"}
                )
            )
            assert data["is_cap_project"] is True
            assert data["services"][0]["file"] == "srv/cat-service.cds"
            assert data["summary"]["ord_annotated_services"] == 1
            assert data["markdown"].startswith("# CAP Project Analysis")

    async def test_analyze_missing_project_via_mcp(self, mcp_server: object, tmp_path: Path) -> None:
        async with Client(mcp_server) as client:  # type: ignore[arg-type]
            result = await client.call_tool(
                "analyze_cap_project", {"project_path": str(tmp_path / "missing")}, raise_on_error=False
            )
            assert parse_tool_result(result)["error"] == "ProjectNotFoundError"


class TestExampleToolsAndResources:
    async def test_get_examples_via_mcp(self, mcp_server: object) -> None:
        async with Client(mcp_server) as client:  # type: ignore[arg-type]
            data = parse_tool_result(
                await client.call_tool("get_ord_examples", {"use_case": "event notifications", "service_type": "event"})
            )
            assert data["total_found"] == len(data["examples"]) > 0
            assert "Define clear event schemas with AsyncAPI" in data["suggestions"]

    async def test_empty_use_case_via_mcp(self, mcp_server: object) -> None:
        async with Client(mcp_server) as client:  # type: ignore[arg-type]
            result = await client.call_tool("get_ord_examples", {"use_case": ""}, raise_on_error=False)
            assert parse_tool_result(result)["error"] == "InvalidArgumentError"

    async def test_concept_resources_via_mcp(self, mcp_server: object) -> None:
        async with Client(mcp_server) as client:  # type: ignore[arg-type]
            overview = await client.read_resource("ord://documentation/concepts")
            assert overview[0].text.startswith("# ORD Concepts")  # type: ignore[union-attr]
            concept = await client.read_resource("ord://concept/product")
            assert concept[0].text.startswith("# ORD Concept: Product")  # type: ignore[union-attr]

    async def test_example_resource_via_mcp(self, mcp_server: object) -> None:
        async with Client(mcp_server) as client:  # type: ignore[arg-type]
            contents = await client.read_resource("ord://examples/consumption-bundle")
            assert contents[0].text.startswith("# ORD Examples: consumption bundle")  # type: ignore[union-attr]

    async def test_prompt_via_mcp(self, mcp_server: object) -> None:
        async with Client(mcp_server) as client:  # type: ignore[arg-type]
            result = await client.get_prompt("annotate_cap_service", {"service_path": "srv/cat-service.cds"})
            text = result.messages[0].content.text  # type: ignore[union-attr]
            assert "`srv/cat-service.cds`" in text
            assert "generate_ord_annotation" in text
