"""ORDコンセプトカタログのデータモデル。"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ConceptProperty(BaseModel):
    """コンセプトのプロパティ名とその説明。"""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str


class ConceptEntry(BaseModel):
    """ORDコンセプトの定義（YAMLから読み込み）。"""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    required_properties: tuple[ConceptProperty, ...] = ()
    optional_properties: tuple[ConceptProperty, ...] = ()
    example: dict[str, Any] = Field(default_factory=dict)
