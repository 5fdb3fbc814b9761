"""ツール結果をMarkdownレポートに整形する。"""

import json

from ord_mcp.models.annotation import AnnotationResult
from ord_mcp.models.example import ExampleCategory, ExampleResult, OrdExample
from ord_mcp.models.project import ProjectAnalysis
from ord_mcp.models.validation import ValidationFinding, ValidationResult


def code_block(code: str, language: str = "") -> str:
    return f"```{language}\n{code.strip()}\n```"


def _finding_lines(findings: list[ValidationFinding]) -> list[str]:
    lines = []
    for index, finding in enumerate(findings, start=1):
        head = f"{index}. **{finding.type}**"
        if finding.context:
            head += f" ({finding.context})"
        lines.append(head)
        lines.append(f"   {finding.message}")
        if finding.value is not None and finding.severity == "error":
            lines.append(f"   Value: `{finding.value}`")
        lines.append("")
    return lines


def format_validation_report(result: ValidationResult) -> str:
    """検証結果をMarkdownに整形する。"""
    lines = [
        "# ORD Metadata Validation Report",
        "",
        f"**Status:** {'Valid' if result.valid else 'Invalid'}",
        f"**Timestamp:** {result.timestamp.isoformat()}",
        f"**Validation Level:** {result.validation_level}",
        "",
        "## Summary",
        "",
        f"- **Errors:** {len(result.errors)}",
        f"- **Warnings:** {len(result.warnings)}",
        f"- **Suggestions:** {len(result.suggestions)}",
        "",
    ]
    for title, findings in (
        ("Errors", result.errors),
        ("Warnings", result.warnings),
        ("Suggestions", result.suggestions),
    ):
        if findings:
            lines += [f"## {title}", ""]
            lines += _finding_lines(findings)
    return "\n".join(lines)


def format_annotation_result(result: AnnotationResult) -> str:
    lines = [
        "# Generated ORD Annotations",
        "",
        f"**Type:** {result.annotation_type}",
        f"**Generated:** {result.timestamp.isoformat()}",
        f"**Services:** {len(result.services)}",
        "",
    ]
    for service in result.services:
        lines += [f"## Service: {service.service_name}", ""]
        if service.annotations:
            lines += ["### Annotations", ""]
            for annotation in service.annotations:
                lines += [f"#### {annotation.type[:1].upper()}{annotation.type[1:]}", ""]
                lines += [code_block(annotation.code, "cds"), ""]
        if service.cds_code:
            lines += ["### Complete Annotated Service", "", code_block(service.cds_code, "cds"), ""]
        if service.explanations:
            lines += ["### Explanations", ""]
            lines += [f"- **{e.annotation}:** {e.explanation}" for e in service.explanations]
            lines.append("")

    if result.package_json is not None:
        lines += [
            "## Package.json Metadata",
            "",
            code_block(json.dumps(result.package_json, indent=2, ensure_ascii=False), "json"),
            "",
        ]
    if result.recommendations:
        lines += ["## Recommendations", ""]
        for index, rec in enumerate(result.recommendations, start=1):
            lines.append(f"{index}. **{rec.type}:** {rec.message}")
            lines.append(f"   {rec.suggestion}")
            lines.append("")
    return "\n".join(lines)


def format_project_analysis(analysis: ProjectAnalysis) -> str:
    summary = analysis.summary
    lines = [
        "# CAP Project Analysis",
        "",
        f"**Project:** {analysis.project_path}",
        f"**CAP Project:** {'yes' if analysis.is_cap_project else 'no'}",
        f"**Analyzed:** {analysis.timestamp.isoformat()}",
        "",
        "## Summary",
        "",
        f"- **Total Files:** {summary.total_files}",
        f"- **Service Files:** {summary.service_files}",
        f"- **Model Files:** {summary.model_files}",
        f"- **Config Files:** {summary.config_files}",
        f"- **ORD Annotated Services:** {summary.ord_annotated_services}",
        "",
    ]
    if analysis.services:
        lines += ["## Services", ""]
        for service in analysis.services:
            annotated = "annotated" if service.has_ord_annotations else "not annotated"
            path = service.path or "-"
            lines.append(
                f"- **{service.name}** ({service.file}) path: `{path}`, "
                f"{len(service.entities)} entities, {len(service.events)} events, {annotated}"
            )
        lines.append("")
    if analysis.metadata_validation is not None:
        validation = analysis.metadata_validation
        lines += [
            "## ORD Metadata",
            "",
            f"**Status:** {'Valid' if validation.valid else 'Invalid'} "
            f"({len(validation.errors)} errors, {len(validation.warnings)} warnings)",
            "",
        ]
    if analysis.suggestions:
        lines += ["## Suggestions", ""]
        for index, suggestion in enumerate(analysis.suggestions, start=1):
            lines.append(f"{index}. **[{suggestion.priority}] {suggestion.category}:** {suggestion.message}")
            if suggestion.action:
                lines.append(f"   Action: {suggestion.action}")
        lines.append("")
    for title, messages in (("Warnings", analysis.warnings), ("Errors", analysis.errors)):
        if messages:
            lines += [f"## {title}", ""]
            lines += [f"- {m}" for m in messages]
            lines.append("")
    return "\n".join(lines)


def _example_lines(examples: list[OrdExample] | tuple[OrdExample, ...]) -> list[str]:
    lines = []
    for example in examples:
        lines += [f"### {example.title}", ""]
        if example.description:
            lines += [example.description, ""]
        lines += [code_block(example.code, example.language), ""]
    return lines


def format_examples(result: ExampleResult) -> str:
    lines = [
        f"# ORD Examples: {result.use_case}",
        "",
        f"**Service Type:** {result.service_type}",
        f"**Complexity:** {result.complexity}",
        f"**Found:** {result.total_found}",
        "",
    ]
    if result.examples:
        lines += ["## Examples", ""]
        lines += _example_lines(result.examples)
    else:
        lines += ["No matching examples found.", ""]
    if result.suggestions:
        lines += ["## Suggestions", ""]
        lines += [f"- {s}" for s in result.suggestions]
        lines.append("")
    return "\n".join(lines)


def format_example_category(category: ExampleCategory) -> str:
    lines = [f"# ORD Examples: {category.name}", "", f"**Keywords:** {', '.join(category.keywords)}", ""]
    lines += _example_lines(category.examples)
    return "\n".join(lines)
