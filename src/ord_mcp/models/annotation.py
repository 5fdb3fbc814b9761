"""ORDアノテーション生成関連のデータモデル。"""

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

AnnotationType = Literal["basic", "comprehensive", "minimal"]


class GeneratedAnnotation(BaseModel):
    """生成された1つの @ORD.Extensions アノテーション。"""

    type: str
    code: str
    context: Literal["service", "event"] = "service"
    event_name: str | None = None


class AnnotationExplanation(BaseModel):
    annotation: str
    explanation: str


class ServiceAnnotations(BaseModel):
    """サービス単位のアノテーション生成結果。"""

    service_name: str
    annotations: list[GeneratedAnnotation] = Field(default_factory=list)
    cds_code: str = ""
    explanations: list[AnnotationExplanation] = Field(default_factory=list)


class Recommendation(BaseModel):
    type: Literal["warning", "improvement"]
    message: str
    suggestion: str


class AnnotationResult(BaseModel):
    """アノテーション生成の結果。"""

    annotation_type: AnnotationType
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    services: list[ServiceAnnotations] = Field(default_factory=list)
    package_json: dict[str, Any] | None = None
    recommendations: list[Recommendation] = Field(default_factory=list)
