"""バリデーション関連のデータモデル。"""

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

Severity = Literal["error", "warning", "info"]
ValidationLevel = Literal["strict", "standard"]


class ValidationFinding(BaseModel):
    """ORDメタデータ検証の個別検出結果。"""

    type: str
    context: str | None = None
    property: str | None = None
    message: str
    value: Any = None
    severity: Severity


class ValidationResult(BaseModel):
    """ORDメタデータ検証の結果。"""

    valid: bool = True
    errors: list[ValidationFinding] = Field(default_factory=list)
    warnings: list[ValidationFinding] = Field(default_factory=list)
    suggestions: list[ValidationFinding] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    validation_level: ValidationLevel = "standard"


class FieldRule(BaseModel):
    """フィールド単位の書式ルール。

    kindに応じて pattern / values / min_length・max_length のいずれかを使う。
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["pattern", "enum", "length"]
    description: str
    pattern: str | None = None
    values: tuple[str, ...] = ()
    min_length: int | None = None
    max_length: int | None = None
