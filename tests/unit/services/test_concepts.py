"""ConceptCatalogのユニットテスト。"""

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from ord_mcp.models.errors import CatalogError, InvalidArgumentError, UnknownConceptError
from ord_mcp.services.concepts import ConceptCatalog

EXPECTED_CONCEPTS = [
    "DocumentProperties",
    "Product",
    "Package",
    "ConsumptionBundle",
    "APIResource",
    "EventResource",
    "EntityType",
    "Capability",
    "DataProduct",
    "Vendor",
    "Group",
    "GroupType",
    "IntegrationDependency",
    "Tombstone",
]


class TestConceptCatalogLoading:
    def test_loads_all_concepts_in_order(self, catalog: ConceptCatalog) -> None:
        assert catalog.names == EXPECTED_CONCEPTS

    def test_every_entry_has_required_properties_and_example(self, catalog: ConceptCatalog) -> None:
        for entry in catalog.entries.values():
            assert entry.description
            assert entry.required_properties
            assert entry.example

    def test_entries_mapping_is_read_only(self, catalog: ConceptCatalog) -> None:
        with pytest.raises(TypeError):
            catalog.entries["Product"] = catalog.entries["Vendor"]  # type: ignore[index]

    def test_entry_is_frozen(self, catalog: ConceptCatalog) -> None:
        with pytest.raises(ValidationError):
            catalog.entries["Product"].name = "Changed"  # type: ignore[misc]

    def test_missing_file_raises_catalog_error(self, tmp_path: Path) -> None:
        with pytest.raises(CatalogError, match="not found"):
            ConceptCatalog.from_yaml(tmp_path)

    def test_malformed_yaml_raises_catalog_error(self, tmp_path: Path) -> None:
        (tmp_path / "ord-concepts.yaml").write_text("concepts: [unclosed", encoding="utf-8")
        with pytest.raises(CatalogError):
            ConceptCatalog.from_yaml(tmp_path)

    def test_missing_concepts_list_raises_catalog_error(self, tmp_path: Path) -> None:
        (tmp_path / "ord-concepts.yaml").write_text("other: 1\n", encoding="utf-8")
        with pytest.raises(CatalogError, match="concepts"):
            ConceptCatalog.from_yaml(tmp_path)

    def test_invalid_entry_raises_catalog_error(self, tmp_path: Path) -> None:
        (tmp_path / "ord-concepts.yaml").write_text("concepts:\n  - name: OnlyName\n", encoding="utf-8")
        with pytest.raises(CatalogError, match="Invalid concept entry"):
            ConceptCatalog.from_yaml(tmp_path)


class TestResolve:
    @pytest.mark.parametrize("name", EXPECTED_CONCEPTS)
    def test_any_casing_resolves_to_canonical_name(self, catalog: ConceptCatalog, name: str) -> None:
        for variant in (name, name.lower(), name.upper(), name.swapcase()):
            assert catalog.resolve(variant) == name

    def test_surrounding_whitespace_is_ignored(self, catalog: ConceptCatalog) -> None:
        assert catalog.resolve("  consumptionbundle\n") == "ConsumptionBundle"

    @pytest.mark.parametrize("value", ["", "   ", "\t\n", None, 42, ["Product"]])
    def test_empty_or_non_string_raises_invalid_argument(self, catalog: ConceptCatalog, value: object) -> None:
        with pytest.raises(InvalidArgumentError):
            catalog.resolve(value)

    def test_unknown_concept_lists_available_names(self, catalog: ConceptCatalog) -> None:
        with pytest.raises(UnknownConceptError) as exc_info:
            catalog.resolve("NotARealConcept")
        message = str(exc_info.value)
        assert message.startswith("Unknown concept: NotARealConcept")
        for name in EXPECTED_CONCEPTS:
            assert name in message
        assert exc_info.value.available == EXPECTED_CONCEPTS

    def test_substring_does_not_match(self, catalog: ConceptCatalog) -> None:
        with pytest.raises(UnknownConceptError):
            catalog.resolve("Prod")
        with pytest.raises(UnknownConceptError):
            catalog.resolve("API")


class TestExplain:
    @pytest.mark.parametrize("name", EXPECTED_CONCEPTS)
    def test_contains_title_and_description(self, catalog: ConceptCatalog, name: str) -> None:
        text = catalog.explain(name.lower())
        lines = text.splitlines()
        assert f"# ORD Concept: {name}" in lines
        assert "## Description" in lines

    def test_sections_are_in_fixed_order(self, catalog: ConceptCatalog) -> None:
        text = catalog.explain("product")
        positions = [
            text.index("# ORD Concept: Product"),
            text.index("## Description"),
            text.index("## Key Properties"),
            text.index("## Example"),
        ]
        assert positions == sorted(positions)

    def test_required_properties_listed_before_optional(self, catalog: ConceptCatalog) -> None:
        text = catalog.explain("Product")
        assert "- **vendor** (required):" in text
        assert "- **parent** (optional):" in text
        last_required = text.rindex("(required)")
        first_optional = text.index("(optional)")
        assert last_required < first_optional

    def test_example_is_json_block(self, catalog: ConceptCatalog) -> None:
        text = catalog.explain("Vendor")
        block = text.split("```json\n", 1)[1].split("\n```", 1)[0]
        assert json.loads(block) == catalog.entries["Vendor"].example

    def test_explain_is_pure(self, catalog: ConceptCatalog) -> None:
        assert catalog.explain("Tombstone") == catalog.explain("TOMBSTONE")

    def test_unknown_concept_raises(self, catalog: ConceptCatalog) -> None:
        with pytest.raises(UnknownConceptError):
            catalog.explain("Widget")


class TestListConcepts:
    def test_list_concepts(self, catalog: ConceptCatalog) -> None:
        concepts = catalog.list_concepts()
        assert [c["name"] for c in concepts] == EXPECTED_CONCEPTS
        assert all(c["description"] for c in concepts)

    def test_overview_mentions_every_concept(self, catalog: ConceptCatalog) -> None:
        overview = catalog.overview()
        for name in EXPECTED_CONCEPTS:
            assert f"## {name}" in overview
