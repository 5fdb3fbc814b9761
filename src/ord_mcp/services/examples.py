"""ユースケースに応じたORDサンプルを提供するサービス。"""

import logging
from pathlib import Path
from urllib.parse import unquote

import yaml
from pydantic import ValidationError

from ord_mcp.models.errors import CatalogError, InvalidArgumentError
from ord_mcp.models.example import ExampleCategory, ExampleResult, OrdExample

logger = logging.getLogger(__name__)

EXAMPLES_FILE = "ord-examples.yaml"

_SERVICE_TYPE_SUGGESTIONS: dict[str, list[str]] = {
    "odata": [
        "Consider using OData v4 protocol for better REST compliance",
        "Add $metadata endpoint for service discovery",
    ],
    "rest": [
        "Follow RESTful design principles",
        "Consider adding OpenAPI specification",
    ],
    "event": [
        "Define clear event schemas with AsyncAPI",
        "Consider event versioning strategy",
    ],
}


class ExampleService:
    """YAMLで定義されたサンプルカテゴリを検索する。"""

    def __init__(self, config_dir: Path) -> None:
        self._config_dir = config_dir
        self._categories: list[ExampleCategory] | None = None

    def _load_categories(self) -> list[ExampleCategory]:
        """サンプル定義を読み込む。"""
        if self._categories is None:
            examples_file = self._config_dir / EXAMPLES_FILE
            try:
                with open(examples_file, encoding="utf-8") as f:
                    data = yaml.safe_load(f)
            except FileNotFoundError:
                raise CatalogError(f"Example catalog not found: {examples_file}") from None
            except yaml.YAMLError as e:
                raise CatalogError(f"Malformed example catalog {examples_file}: {e}") from e
            try:
                self._categories = [ExampleCategory.model_validate(c) for c in data["categories"]]
            except (TypeError, KeyError, ValidationError) as e:
                raise CatalogError(f"Invalid example catalog {examples_file}: {e}") from e
        return self._categories

    def list_categories(self) -> list[str]:
        return [c.name for c in self._load_categories()]

    def get_category(self, name: str) -> ExampleCategory:
        """カテゴリ名でカテゴリを取得する。

        大文字小文字を区別せず、URI向けの "rest-api" や "rest%20api" も "rest api" として扱う。

        Raises:
            InvalidArgumentError: 該当カテゴリが存在しない場合。
        """
        key = " ".join(unquote(name).replace("-", " ").replace("_", " ").lower().split())
        for category in self._load_categories():
            if category.name.lower() == key:
                return category
        available = ", ".join(self.list_categories())
        raise InvalidArgumentError(f"Unknown example category: {name}. Available categories: {available}")

    def get_examples(
        self,
        use_case: str,
        service_type: str = "generic",
        complexity: str = "moderate",
    ) -> ExampleResult:
        """ユースケースに一致するサンプルを返す。

        キーワードがユースケースの部分文字列である場合（またはその逆）、
        もしくはカテゴリ名が一致する場合にそのカテゴリのサンプルを含める。

        Args:
            use_case: ユースケースの説明（例: "odata service"）。
            service_type: サービス種別（odata / rest / event / generic）。
            complexity: 複雑度。結果にそのまま記録される。

        Raises:
            InvalidArgumentError: use_caseが空の場合。
        """
        if not use_case or not use_case.strip():
            raise InvalidArgumentError("use_case must not be empty")
        needle = use_case.strip().lower()

        examples: list[OrdExample] = []
        for category in self._load_categories():
            keyword_match = any(k in needle or needle in k for k in category.keywords)
            name = category.name.lower()
            if keyword_match or needle in name or name in needle:
                examples.extend(category.examples)

        logger.debug("Found %d examples for use case %r", len(examples), use_case)
        return ExampleResult(
            use_case=use_case,
            service_type=service_type,
            complexity=complexity,
            examples=examples,
            total_found=len(examples),
            suggestions=self._suggestions(needle, service_type),
        )

    @staticmethod
    def _suggestions(use_case: str, service_type: str) -> list[str]:
        suggestions = list(_SERVICE_TYPE_SUGGESTIONS.get(service_type.lower(), []))
        if "order" in use_case:
            suggestions.append("Group related order APIs in a consumption bundle")
            suggestions.append("Consider order lifecycle events")
        return suggestions
