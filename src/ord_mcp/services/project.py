"""CAPプロジェクトを走査してORD対応状況を解析するサービス。"""

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Any

from ord_mcp.analyzers.cds import parse_cds
from ord_mcp.models.errors import InvalidArgumentError, ProjectNotFoundError, ProjectScanTimeoutError
from ord_mcp.models.project import ProjectAnalysis, ProjectCdsService, ProjectSuggestion
from ord_mcp.validators.metadata import MetadataValidator

logger = logging.getLogger(__name__)

CAP_FILE_EXTENSIONS = frozenset({".cds", ".json", ".js", ".ts"})
CAP_DEPENDENCIES = ("@sap/cds", "@sap/cds-dk", "@cap-js/ord")
ORD_SECTION = "open-resource-discovery"
SUGGESTION_LEVELS = ("basic", "detailed", "comprehensive")

_SKIPPED_DIRS = frozenset({"node_modules"})


def is_cap_project(package_json: dict[str, Any]) -> bool:
    """dependencies / devDependencies にCAP関連パッケージが含まれるか判定する。"""
    dependencies: dict[str, Any] = {}
    for key in ("dependencies", "devDependencies"):
        section = package_json.get(key)
        if isinstance(section, dict):
            dependencies.update(section)
    return any(dep in dependencies for dep in CAP_DEPENDENCIES)


class ProjectService:
    """CAPプロジェクトのファイル構成・CDSサービス・ORDメタデータを解析する。"""

    def __init__(
        self,
        validator: MetadataValidator,
        scan_timeout: float = 30.0,
        max_files: int = 2000,
    ) -> None:
        self._validator = validator
        self._scan_timeout = scan_timeout
        self._max_files = max_files

    async def analyze_project(
        self,
        project_path: str,
        include_files: list[str] | None = None,
        suggestion_level: str = "detailed",
    ) -> ProjectAnalysis:
        """プロジェクトを解析する。

        走査はワーカースレッドで実行し、scan_timeout秒で打ち切る。

        Args:
            project_path: プロジェクトのルートディレクトリ。
            include_files: 解析対象を限定する場合のファイルパス（プロジェクト相対または絶対）。
            suggestion_level: basic / detailed / comprehensive。

        Raises:
            InvalidArgumentError: suggestion_levelが不正な場合。
            ProjectNotFoundError: ディレクトリが存在しない場合。
            ProjectScanTimeoutError: 走査が制限時間を超えた場合。
        """
        if suggestion_level not in SUGGESTION_LEVELS:
            raise InvalidArgumentError(
                f"Unknown suggestion_level: {suggestion_level}. Expected one of: {', '.join(SUGGESTION_LEVELS)}"
            )
        root = Path(project_path).expanduser().resolve()
        if not root.is_dir():
            raise ProjectNotFoundError(project_path)

        try:
            analysis = await asyncio.wait_for(
                asyncio.to_thread(self._scan, root, include_files, suggestion_level),
                timeout=self._scan_timeout,
            )
        except TimeoutError:
            raise ProjectScanTimeoutError(project_path, self._scan_timeout) from None

        logger.info(
            "Analyzed project %s: files=%d services=%d suggestions=%d",
            root,
            analysis.summary.total_files,
            len(analysis.services),
            len(analysis.suggestions),
        )
        return analysis

    def _scan(self, root: Path, include_files: list[str] | None, suggestion_level: str) -> ProjectAnalysis:
        analysis = ProjectAnalysis(project_path=str(root))
        self._read_package_json(root, analysis, strict=suggestion_level == "comprehensive")

        for path in self._collect_files(root, include_files, analysis):
            self._analyze_file(root, path, analysis)

        analysis.suggestions = build_suggestions(analysis, suggestion_level)
        return analysis

    def _read_package_json(self, root: Path, analysis: ProjectAnalysis, strict: bool) -> None:
        package_file = root / "package.json"
        try:
            package_json = json.loads(package_file.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            analysis.errors.append(f"Could not read package.json: {e}")
            return
        if not isinstance(package_json, dict):
            analysis.errors.append("Could not read package.json: expected a JSON object")
            return

        analysis.is_cap_project = is_cap_project(package_json)
        if not analysis.is_cap_project:
            analysis.warnings.append("This does not appear to be a CAP project (no @sap/cds dependency found)")

        section = package_json.get(ORD_SECTION)
        if section is None:
            return
        if not isinstance(section, dict):
            analysis.warnings.append(f'"{ORD_SECTION}" section in package.json must be an object')
            return
        analysis.ord_metadata = section
        analysis.metadata_validation = self._validator.validate(section, strict=strict)

    def _collect_files(self, root: Path, include_files: list[str] | None, analysis: ProjectAnalysis) -> list[Path]:
        if include_files:
            return self._included_files(root, include_files, analysis)

        files: list[Path] = []
        for dirpath, dirnames, filenames in os.walk(root):
            dirnames[:] = sorted(d for d in dirnames if not d.startswith(".") and d not in _SKIPPED_DIRS)
            for name in sorted(filenames):
                if Path(name).suffix not in CAP_FILE_EXTENSIONS:
                    continue
                if len(files) >= self._max_files:
                    analysis.warnings.append(
                        f"File limit of {self._max_files} reached; remaining files were not analyzed"
                    )
                    return files
                files.append(Path(dirpath) / name)
        return files

    def _included_files(self, root: Path, include_files: list[str], analysis: ProjectAnalysis) -> list[Path]:
        files: list[Path] = []
        for entry in include_files:
            candidate = Path(entry)
            full = (candidate if candidate.is_absolute() else root / candidate).resolve()
            if not full.is_relative_to(root):
                analysis.warnings.append(f"Skipping file outside project: {entry}")
                continue
            if not full.is_file():
                analysis.warnings.append(f"Could not analyze file {entry}: file not found")
                continue
            if len(files) >= self._max_files:
                analysis.warnings.append(f"File limit of {self._max_files} reached; remaining files were not analyzed")
                break
            files.append(full)
        return files

    @staticmethod
    def _analyze_file(root: Path, path: Path, analysis: ProjectAnalysis) -> None:
        relative = path.relative_to(root).as_posix()
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            analysis.warnings.append(f"Could not analyze file {relative}: {e}")
            return

        analysis.summary.total_files += 1
        if path.suffix == ".cds":
            model = parse_cds(content)
            for service in model.services:
                analysis.services.append(ProjectCdsService(file=relative, **service.model_dump()))
                if service.has_ord_annotations:
                    analysis.summary.ord_annotated_services += 1
            if model.services:
                analysis.summary.service_files += 1
            elif model.entities:
                analysis.summary.model_files += 1
        elif path.suffix == ".json":
            analysis.summary.config_files += 1


def build_suggestions(analysis: ProjectAnalysis, suggestion_level: str) -> list[ProjectSuggestion]:
    """解析結果から改善提案を生成する。

    detailedはbasicを、comprehensiveはdetailedを包含する。
    """
    suggestions: list[ProjectSuggestion] = []

    if not analysis.services:
        suggestions.append(
            ProjectSuggestion(
                type="warning",
                category="project-structure",
                message="No CAP services found. Consider creating service definitions in the srv/ directory.",
                priority="high",
            )
        )
    if analysis.summary.ord_annotated_services == 0:
        suggestions.append(
            ProjectSuggestion(
                type="improvement",
                category="ord-annotations",
                message="No ORD annotations found. Add ORD metadata to make your services discoverable.",
                priority="high",
                action="Add @ORD.Extensions annotations to your services",
            )
        )
    if analysis.ord_metadata is None:
        suggestions.append(
            ProjectSuggestion(
                type="improvement",
                category="ord-metadata",
                message=f"No ORD metadata found in package.json. Consider adding {ORD_SECTION} section.",
                priority="medium",
                action=f'Add "{ORD_SECTION}" section to package.json',
            )
        )
    elif analysis.metadata_validation is not None and not analysis.metadata_validation.valid:
        suggestions.append(
            ProjectSuggestion(
                type="warning",
                category="ord-metadata",
                message=(
                    f"ORD metadata in package.json has {len(analysis.metadata_validation.errors)} validation errors"
                ),
                priority="high",
                action="Run validate_ord_metadata and fix the reported errors",
            )
        )

    if suggestion_level in ("detailed", "comprehensive"):
        for service in analysis.services:
            suggestions.extend(_service_suggestions(service))

    if suggestion_level == "comprehensive":
        suggestions.extend(_comprehensive_suggestions(analysis))

    return suggestions


def _service_suggestions(service: ProjectCdsService) -> list[ProjectSuggestion]:
    suggestions = []
    annotation_types = {a.type for a in service.ord_annotations}

    if not service.has_ord_annotations:
        suggestions.append(
            ProjectSuggestion(
                type="improvement",
                category="ord-annotations",
                message=f'Service "{service.name}" lacks ORD annotations',
                priority="medium",
                action=f"Add @ORD.Extensions annotations to service {service.name}",
                context={"serviceName": service.name, "servicePath": service.path, "file": service.file},
            )
        )
    if not service.path:
        suggestions.append(
            ProjectSuggestion(
                type="improvement",
                category="service-configuration",
                message=f'Service "{service.name}" should have an explicit path annotation',
                priority="low",
                action=f"Add @path annotation to service {service.name}",
            )
        )
    if not service.entities and not service.events:
        suggestions.append(
            ProjectSuggestion(
                type="warning",
                category="service-content",
                message=f'Service "{service.name}" is empty (no entities or events)',
                priority="medium",
            )
        )
    if service.entities and "apiResource" not in annotation_types:
        suggestions.append(
            ProjectSuggestion(
                type="improvement",
                category="ord-patterns",
                message=f'Service "{service.name}" with entities should have @ORD.Extensions.apiResource annotation',
                priority="medium",
                action="Add apiResource annotation for data access patterns",
            )
        )
    if service.events and "eventResource" not in annotation_types:
        suggestions.append(
            ProjectSuggestion(
                type="improvement",
                category="ord-patterns",
                message=f'Service "{service.name}" with events should have @ORD.Extensions.eventResource annotations',
                priority="medium",
                action="Add eventResource annotations for each event",
            )
        )
    return suggestions


def _comprehensive_suggestions(analysis: ProjectAnalysis) -> list[ProjectSuggestion]:
    suggestions = []
    if len(analysis.services) > 3:
        suggestions.append(
            ProjectSuggestion(
                type="architecture",
                category="ord-organization",
                message="Consider grouping related services into consumption bundles",
                priority="low",
                action="Create consumption bundles for related APIs",
            )
        )
    suggestions.append(
        ProjectSuggestion(
            type="best-practice",
            category="ord-ids",
            message="Use consistent ORD ID naming conventions across your project",
            priority="low",
            action="Review and standardize ordId patterns (e.g., company:type:name:version)",
        )
    )
    suggestions.append(
        ProjectSuggestion(
            type="best-practice",
            category="documentation",
            message="Add comprehensive descriptions to your ORD resources",
            priority="low",
            action="Enhance shortDescription and description fields in ORD annotations",
        )
    )
    if analysis.ord_metadata is not None:
        suggestions.append(
            ProjectSuggestion(
                type="integration",
                category="ord-tooling",
                message="Consider using @cap-js/ord plugin for automated ORD metadata generation",
                priority="low",
                action="Install and configure @cap-js/ord package",
            )
        )
    return suggestions
