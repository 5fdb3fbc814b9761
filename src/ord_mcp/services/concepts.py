"""ORDコンセプトの解決と説明文の生成を行うサービス。"""

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from types import MappingProxyType
from typing import Any

import yaml
from pydantic import ValidationError

from ord_mcp.models.concept import ConceptEntry
from ord_mcp.models.errors import CatalogError, InvalidArgumentError, UnknownConceptError

logger = logging.getLogger(__name__)

CONCEPTS_FILE = "ord-concepts.yaml"


class ConceptCatalog:
    """読み取り専用のORDコンセプトカタログ。

    サーバー生成時に一度だけ読み込まれ、以後は変更されない。
    """

    def __init__(self, entries: list[ConceptEntry]) -> None:
        self._entries: Mapping[str, ConceptEntry] = MappingProxyType({e.name: e for e in entries})
        self._by_lower = MappingProxyType({name.lower(): name for name in self._entries})

    @classmethod
    def from_yaml(cls, config_dir: Path) -> "ConceptCatalog":
        """config_dir配下のコンセプト定義ファイルからカタログを構築する。

        Raises:
            CatalogError: ファイルが存在しない、または内容が不正な場合。
        """
        concepts_file = config_dir / CONCEPTS_FILE
        try:
            with open(concepts_file, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except FileNotFoundError:
            raise CatalogError(f"Concept catalog not found: {concepts_file}") from None
        except yaml.YAMLError as e:
            raise CatalogError(f"Malformed concept catalog {concepts_file}: {e}") from e

        if not isinstance(data, dict) or not isinstance(data.get("concepts"), list):
            raise CatalogError(f"Concept catalog must define a 'concepts' list: {concepts_file}")
        try:
            entries = [ConceptEntry.model_validate(item) for item in data["concepts"]]
        except ValidationError as e:
            raise CatalogError(f"Invalid concept entry in {concepts_file}: {e}") from e

        logger.info("Loaded %d ORD concepts from %s", len(entries), concepts_file)
        return cls(entries)

    @property
    def entries(self) -> Mapping[str, ConceptEntry]:
        return self._entries

    @property
    def names(self) -> list[str]:
        return list(self._entries)

    def resolve(self, concept: Any) -> str:
        """入力されたコンセプト名をカタログ上の正式名に解決する。

        前後の空白を除去し、大文字小文字を区別せずに完全一致で照合する。

        Args:
            concept: 呼び出し側が指定したコンセプト名。

        Returns:
            カタログ上の正式なコンセプト名。

        Raises:
            InvalidArgumentError: 文字列でない、または空の場合。
            UnknownConceptError: カタログに一致するコンセプトがない場合。
        """
        if not isinstance(concept, str):
            raise InvalidArgumentError("Concept name must be a string")
        key = concept.strip()
        if not key:
            raise InvalidArgumentError("Concept name must not be empty")

        canonical = self._by_lower.get(key.lower())
        if canonical is None:
            raise UnknownConceptError(key, self.names)
        return canonical

    def get(self, concept: Any) -> ConceptEntry:
        return self._entries[self.resolve(concept)]

    def explain(self, concept: Any) -> str:
        """コンセプトの説明をMarkdownで返す。

        見出しの順序は常に Description, Key Properties, Example となる。
        """
        entry = self.get(concept)
        lines = [
            f"# ORD Concept: {entry.name}",
            "",
            "## Description",
            entry.description.strip(),
            "",
            "## Key Properties",
        ]
        for prop in entry.required_properties:
            lines.append(f"- **{prop.name}** (required): {prop.description}")
        for prop in entry.optional_properties:
            lines.append(f"- **{prop.name}** (optional): {prop.description}")
        lines += [
            "",
            "## Example",
            "```json",
            json.dumps(entry.example, indent=2, ensure_ascii=False),
            "```",
        ]
        return "\n".join(lines) + "\n"

    def list_concepts(self) -> list[dict[str, str]]:
        """カタログのコンセプト名と概要を定義順に返す。"""
        return [{"name": e.name, "description": e.description.strip()} for e in self._entries.values()]

    def overview(self) -> str:
        """全コンセプトの概要をMarkdownで返す。"""
        lines = ["# ORD Concepts", ""]
        for entry in self._entries.values():
            required = ", ".join(p.name for p in entry.required_properties) or "-"
            lines.append(f"## {entry.name}")
            lines.append(entry.description.strip())
            lines.append(f"Required: {required}")
            lines.append("")
        return "\n".join(lines)
