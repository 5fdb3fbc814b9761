"""CDS（SAP CAP）定義の解析結果モデル。"""

from typing import Literal

from pydantic import BaseModel, Field


class CdsElement(BaseModel):
    """エンティティ・イベントの要素、またはアクションのパラメータ。"""

    name: str
    type: str


class CdsEntity(BaseModel):
    name: str
    extends: str | None = None
    projection_of: str | None = None
    elements: list[CdsElement] = Field(default_factory=list)


class CdsEvent(BaseModel):
    name: str
    elements: list[CdsElement] = Field(default_factory=list)


class CdsOperation(BaseModel):
    """サービスに定義されたアクションまたはファンクション。"""

    kind: Literal["action", "function"]
    name: str
    parameters: list[CdsElement] = Field(default_factory=list)
    returns: str | None = None


class OrdAnnotation(BaseModel):
    """@ORD.Extensions.* アノテーション。

    contextは所属するサービス名、サービス外であれば "global"。
    """

    type: str
    value: str
    context: str = "global"


class CdsService(BaseModel):
    name: str
    path: str | None = None
    entities: list[CdsEntity] = Field(default_factory=list)
    events: list[CdsEvent] = Field(default_factory=list)
    operations: list[CdsOperation] = Field(default_factory=list)
    ord_annotations: list[OrdAnnotation] = Field(default_factory=list)

    @property
    def has_ord_annotations(self) -> bool:
        return bool(self.ord_annotations)


class CdsModel(BaseModel):
    """1つのCDSソースの解析結果。"""

    namespace: str | None = None
    imports: list[str] = Field(default_factory=list)
    services: list[CdsService] = Field(default_factory=list)
    entities: list[CdsEntity] = Field(default_factory=list)
    events: list[CdsEvent] = Field(default_factory=list)
    ord_annotations: list[OrdAnnotation] = Field(default_factory=list)
