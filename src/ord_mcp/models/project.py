"""CAPプロジェクト解析関連のデータモデル。"""

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from ord_mcp.models.cds import CdsService
from ord_mcp.models.validation import ValidationResult

SuggestionLevel = Literal["basic", "detailed", "comprehensive"]


class ProjectSummary(BaseModel):
    total_files: int = 0
    service_files: int = 0
    model_files: int = 0
    config_files: int = 0
    ord_annotated_services: int = 0


class ProjectSuggestion(BaseModel):
    """プロジェクトに対する改善提案。"""

    type: str
    category: str
    message: str
    priority: Literal["high", "medium", "low"]
    action: str | None = None
    context: dict[str, Any] | None = None


class ProjectCdsService(CdsService):
    """プロジェクト内で見つかったCDSサービス（定義ファイル付き）。"""

    file: str


class ProjectAnalysis(BaseModel):
    """CAPプロジェクトの解析結果。"""

    project_path: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    is_cap_project: bool = False
    summary: ProjectSummary = Field(default_factory=ProjectSummary)
    services: list[ProjectCdsService] = Field(default_factory=list)
    ord_metadata: dict[str, Any] | None = None
    metadata_validation: ValidationResult | None = None
    suggestions: list[ProjectSuggestion] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
