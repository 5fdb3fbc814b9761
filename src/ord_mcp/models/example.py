"""ORDサンプル関連のデータモデル。"""

from pydantic import BaseModel, ConfigDict, Field


class OrdExample(BaseModel):
    """アノテーション・メタデータのサンプル。"""

    model_config = ConfigDict(frozen=True)

    title: str
    description: str | None = None
    language: str = "cds"
    code: str


class ExampleCategory(BaseModel):
    """ユースケース別のサンプルカテゴリ。"""

    model_config = ConfigDict(frozen=True)

    name: str
    keywords: tuple[str, ...] = ()
    examples: tuple[OrdExample, ...] = ()


class ExampleResult(BaseModel):
    """サンプル検索の結果。"""

    use_case: str
    service_type: str
    complexity: str
    examples: list[OrdExample] = Field(default_factory=list)
    total_found: int = 0
    suggestions: list[str] = Field(default_factory=list)
