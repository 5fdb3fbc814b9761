"""ORDメタデータの構造・書式・相互参照バリデーションロジック。"""

import json
import logging
import re
from collections import Counter
from collections.abc import Mapping
from pathlib import Path
from types import MappingProxyType
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict

from ord_mcp.models.errors import FileReadError, InvalidArgumentError
from ord_mcp.models.validation import FieldRule, ValidationFinding, ValidationResult

logger = logging.getLogger(__name__)

ORD_ID_PATTERN = r"^[a-zA-Z0-9._-]+:[a-zA-Z0-9._-]+:[a-zA-Z0-9._-]+:v\d+$"
_VERSION_PATTERN = re.compile(r"\d+\.\d+\.\d+")

FIELD_RULES: Mapping[str, FieldRule] = MappingProxyType(
    {
        "ordId": FieldRule(
            kind="pattern",
            pattern=ORD_ID_PATTERN,
            description="ORD ID must follow format: namespace:type:localId:v<major version>",
        ),
        "title": FieldRule(
            kind="length",
            min_length=1,
            max_length=255,
            description="Title is required and must be between 1-255 characters",
        ),
        "shortDescription": FieldRule(
            kind="length",
            min_length=1,
            max_length=255,
            description="Short description is required and must be between 1-255 characters",
        ),
        "vendor": FieldRule(
            kind="pattern",
            pattern=r"^[a-zA-Z0-9._:-]+$",
            description="Vendor must be a valid ORD ID reference",
        ),
        "apiProtocol": FieldRule(
            kind="enum",
            values=("odata-v2", "odata-v4", "rest", "graphql", "soap", "rpc"),
            description="API protocol must be one of the supported values",
        ),
        "eventResourceType": FieldRule(
            kind="enum",
            values=("BusinessEvent", "TechnicalEvent"),
            description="Event resource type must be BusinessEvent or TechnicalEvent",
        ),
    }
)

_STANDARD_DEFINITION_TYPES: dict[str, tuple[str, ...]] = {
    "api": ("openapi-v3", "edmx", "csdl-json", "wsdl-v1", "rfcmetadata-v1"),
    "event": ("asyncapi-v2", "asyncapi-v3"),
}

_STANDARD_CREDENTIAL_STRATEGIES = ("oauth2", "basic", "custom")


class ResourceSchema(BaseModel):
    """リソースコレクション単位の検証内容の定義。"""

    model_config = ConfigDict(frozen=True)

    collection: str
    required: tuple[str, ...]
    rule_fields: tuple[str, ...]
    entry_points_required: bool = False
    definition_kind: Literal["api", "event"] | None = None
    definitions_suggestion: str | None = None
    credential_strategies: bool = False
    resource_references: bool = False
    standard_types: tuple[str, ...] = ()
    suggest_description: bool = False


COLLECTION_SCHEMAS: tuple[ResourceSchema, ...] = (
    ResourceSchema(
        collection="products",
        required=("ordId", "title", "shortDescription", "vendor"),
        rule_fields=("ordId", "title", "shortDescription", "vendor"),
        suggest_description=True,
    ),
    ResourceSchema(
        collection="capabilities",
        required=("ordId", "title", "shortDescription", "type"),
        rule_fields=("ordId", "title", "shortDescription"),
        standard_types=(
            "sap.mdo:capability-type:business-capability:v1",
            "sap.mdo:capability-type:technical-capability:v1",
        ),
        suggest_description=True,
    ),
    ResourceSchema(
        collection="apiResources",
        required=("ordId", "title", "shortDescription", "apiProtocol"),
        rule_fields=("ordId", "title", "shortDescription", "apiProtocol"),
        entry_points_required=True,
        definition_kind="api",
        definitions_suggestion=(
            "Consider adding resource definitions (OpenAPI, EDMX, etc.) for better API documentation"
        ),
    ),
    ResourceSchema(
        collection="eventResources",
        required=("ordId", "title", "shortDescription", "eventResourceType"),
        rule_fields=("ordId", "title", "shortDescription", "eventResourceType"),
        definition_kind="event",
        definitions_suggestion="Consider adding AsyncAPI specification for better event documentation",
    ),
    ResourceSchema(
        collection="consumptionBundles",
        required=("ordId", "title", "shortDescription", "credentialExchangeStrategies"),
        rule_fields=("ordId", "title", "shortDescription"),
        credential_strategies=True,
        resource_references=True,
        suggest_description=True,
    ),
    ResourceSchema(
        collection="vendors",
        required=("ordId", "title"),
        rule_fields=("ordId", "title"),
    ),
)

COLLECTION_NAMES: tuple[str, ...] = tuple(s.collection for s in COLLECTION_SCHEMAS)

# ordIdの収集順序（ベンダー → 製品 → ... → バンドル）
_DECLARATION_ORDER = (
    "vendors",
    "products",
    "capabilities",
    "apiResources",
    "eventResources",
    "consumptionBundles",
)


def _is_missing(value: Any) -> bool:
    return value is None or value == ""


def _as_list(value: Any, context: str) -> list[Any]:
    if not isinstance(value, list):
        raise TypeError(f"{context} must be an array, got {type(value).__name__}")
    return value


def _as_mapping(value: Any, context: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise TypeError(f"{context} must be an object, got {type(value).__name__}")
    return value


def _finding(
    severity: Literal["error", "warning", "info"],
    type_: str,
    message: str,
    context: str | None = None,
    prop: str | None = None,
    value: Any = None,
) -> ValidationFinding:
    return ValidationFinding(
        type=type_,
        context=context,
        property=prop,
        message=message,
        value=value,
        severity=severity,
    )


class MetadataValidator:
    """ORDメタデータドキュメントを検証する。

    検証は状態を持たない単一パスで、同じ入力に対して常に同じ検出結果を返す。
    業務データの不備は例外ではなく ValidationResult の各リストとして返す。
    """

    def validate(self, metadata: Any, strict: bool = False) -> ValidationResult:
        """ORDメタデータを構造・フィールド・相互参照の順で検証する。

        Args:
            metadata: 検証対象のメタデータ（JSONオブジェクト相当のdict）。
            strict: Trueの場合、ベストプラクティスの提案（suggestions）も出力する。

        Returns:
            検証結果。errorsが空の場合のみ valid=True。

        Raises:
            InvalidArgumentError: metadataがオブジェクト（dict）でない場合。
        """
        if not isinstance(metadata, dict):
            raise InvalidArgumentError(
                f"Metadata must be a JSON object, got {type(metadata).__name__}"
            )

        result = ValidationResult(validation_level="strict" if strict else "standard")

        try:
            self._check_structure(metadata, result)
            for schema in COLLECTION_SCHEMAS:
                records = metadata.get(schema.collection)
                if records is None:
                    continue
                for index, record in enumerate(_as_list(records, schema.collection)):
                    context = f"{schema.collection}[{index}]"
                    self._check_record(schema, _as_mapping(record, context), context, result, strict)
            self._check_cross_references(metadata, result)
        except Exception as e:
            logger.exception("Metadata validation aborted")
            result.errors.append(
                _finding("error", "validation_error", f"Validation failed: {e}")
            )

        result.valid = not result.errors
        logger.debug(
            "Validation completed: valid=%s errors=%d warnings=%d suggestions=%d",
            result.valid,
            len(result.errors),
            len(result.warnings),
            len(result.suggestions),
        )
        return result

    # ------------------------------------------------------------------
    # Phase 1: ドキュメント構造
    # ------------------------------------------------------------------

    @staticmethod
    def _check_structure(metadata: dict[str, Any], result: ValidationResult) -> None:
        version = metadata.get("openResourceDiscoveryVersion")
        if _is_missing(version):
            result.errors.append(
                _finding(
                    "error",
                    "structure",
                    "Missing required property: openResourceDiscoveryVersion",
                    prop="openResourceDiscoveryVersion",
                )
            )
        elif not isinstance(version, str) or not _VERSION_PATTERN.fullmatch(version):
            result.errors.append(
                _finding(
                    "error",
                    "structure",
                    "Invalid version format. Expected semantic version (e.g., 1.9.0)",
                    prop="openResourceDiscoveryVersion",
                    value=version,
                )
            )

        has_resources = any(
            isinstance(metadata.get(name), list) and len(metadata[name]) > 0 for name in COLLECTION_NAMES
        )
        if not has_resources:
            result.warnings.append(
                _finding(
                    "warning",
                    "structure",
                    "No resources defined. Consider adding products, capabilities, APIs, or events",
                )
            )

    # ------------------------------------------------------------------
    # Phase 2: レコード単位
    # ------------------------------------------------------------------

    def _check_record(
        self,
        schema: ResourceSchema,
        record: dict[str, Any],
        context: str,
        result: ValidationResult,
        strict: bool,
    ) -> None:
        for field in schema.required:
            if _is_missing(record.get(field)):
                result.errors.append(
                    _finding("error", "field_validation", f"Missing required field: {field}", context, field)
                )

        for field in schema.rule_fields:
            self._apply_rule(FIELD_RULES[field], field, record.get(field), context, result)

        if "labels" in record:
            self._check_labels(record["labels"], context, result)

        if schema.standard_types:
            self._check_type(schema, record, context, result)

        if schema.entry_points_required:
            self._check_entry_points(record, context, result)

        if schema.definition_kind is not None:
            definitions = record.get("resourceDefinitions")
            if definitions is not None:
                path = f"{context}.resourceDefinitions"
                for index, definition in enumerate(_as_list(definitions, path)):
                    item_context = f"{path}[{index}]"
                    self._check_resource_definition(
                        _as_mapping(definition, item_context), schema.definition_kind, item_context, result
                    )
            elif strict and schema.definitions_suggestion:
                result.suggestions.append(
                    _finding("info", "enhancement", schema.definitions_suggestion, context)
                )

        if schema.credential_strategies:
            self._check_credential_strategies(record, context, result)

        if schema.resource_references:
            has_references = bool(record.get("apiResources")) or bool(record.get("eventResources"))
            if not has_references:
                result.warnings.append(
                    _finding(
                        "warning",
                        "field_validation",
                        "Consumption bundle should reference at least one API or event resource",
                        context,
                    )
                )

        if strict and schema.suggest_description and _is_missing(record.get("description")):
            result.suggestions.append(
                _finding(
                    "info",
                    "enhancement",
                    "Consider adding a detailed description for better documentation",
                    context,
                    "description",
                )
            )

    @staticmethod
    def _apply_rule(
        rule: FieldRule,
        field: str,
        value: Any,
        context: str,
        result: ValidationResult,
    ) -> None:
        """単一のフィールドルールを適用する。未設定の値は必須チェック側で扱う。"""
        if _is_missing(value):
            return

        if not isinstance(value, str):
            result.errors.append(
                _finding("error", "field_validation", f"{field} must be a string", context, field, value)
            )
            return

        if rule.kind == "pattern" and rule.pattern is not None:
            if not re.fullmatch(rule.pattern, value):
                result.errors.append(
                    _finding(
                        "error",
                        "field_validation",
                        f"Invalid format for {field}: {rule.description}",
                        context,
                        field,
                        value,
                    )
                )
        elif rule.kind == "length":
            if rule.max_length is not None and len(value) > rule.max_length:
                result.errors.append(
                    _finding(
                        "error",
                        "field_validation",
                        f"{field} exceeds maximum length of {rule.max_length} characters",
                        context,
                        field,
                        value,
                    )
                )
            if rule.min_length is not None and len(value) < rule.min_length:
                result.errors.append(
                    _finding(
                        "error",
                        "field_validation",
                        f"{field} is below minimum length of {rule.min_length} characters",
                        context,
                        field,
                        value,
                    )
                )
        elif rule.kind == "enum" and value not in rule.values:
            result.errors.append(
                _finding(
                    "error",
                    "field_validation",
                    f"Invalid value for {field}. Expected one of: {', '.join(rule.values)}",
                    context,
                    field,
                    value,
                )
            )

    @staticmethod
    def _check_labels(labels: Any, context: str, result: ValidationResult) -> None:
        if not isinstance(labels, dict):
            result.errors.append(
                _finding("error", "field_validation", "Labels must be an object", context, "labels")
            )
            return
        for key, value in labels.items():
            if not isinstance(value, list):
                result.errors.append(
                    _finding("error", "field_validation", "Label values must be arrays", context, f"labels.{key}")
                )

    @staticmethod
    def _check_type(schema: ResourceSchema, record: dict[str, Any], context: str, result: ValidationResult) -> None:
        type_ = record.get("type")
        if _is_missing(type_) or type_ in schema.standard_types or record.get("customType"):
            return
        result.warnings.append(
            _finding(
                "warning",
                "field_validation",
                "Non-standard capability type. Consider using standard types or define customType",
                context,
                "type",
                type_,
            )
        )

    @staticmethod
    def _check_entry_points(record: dict[str, Any], context: str, result: ValidationResult) -> None:
        entry_points = record.get("entryPoints")
        if not entry_points:
            result.errors.append(
                _finding(
                    "error",
                    "field_validation",
                    "API resource must have at least one entry point",
                    context,
                    "entryPoints",
                )
            )
            return

        path = f"{context}.entryPoints"
        for index, entry_point in enumerate(_as_list(entry_points, path)):
            item_context = f"{path}[{index}]"
            entry_point = _as_mapping(entry_point, item_context)
            if _is_missing(entry_point.get("type")):
                result.errors.append(
                    _finding("error", "field_validation", "Entry point must have a type", item_context, "type")
                )
            if _is_missing(entry_point.get("url")):
                result.errors.append(
                    _finding("error", "field_validation", "Entry point must have a URL", item_context, "url")
                )

    @staticmethod
    def _check_resource_definition(
        definition: dict[str, Any],
        kind: Literal["api", "event"],
        context: str,
        result: ValidationResult,
    ) -> None:
        type_ = definition.get("type")
        if _is_missing(type_):
            result.errors.append(
                _finding("error", "field_validation", "Resource definition must have a type", context, "type")
            )
        elif type_ not in _STANDARD_DEFINITION_TYPES[kind]:
            result.warnings.append(
                _finding(
                    "warning",
                    "field_validation",
                    f"Non-standard {'API' if kind == 'api' else 'event'} resource definition type: {type_}",
                    context,
                    "type",
                    type_,
                )
            )

        if _is_missing(definition.get("mediaType")):
            result.errors.append(
                _finding(
                    "error", "field_validation", "Resource definition must have a media type", context, "mediaType"
                )
            )

        if _is_missing(definition.get("url")) and _is_missing(definition.get("content")):
            result.errors.append(
                _finding(
                    "error",
                    "field_validation",
                    "Resource definition must have either URL or inline content",
                    context,
                    "url",
                )
            )

    @staticmethod
    def _check_credential_strategies(record: dict[str, Any], context: str, result: ValidationResult) -> None:
        strategies = record.get("credentialExchangeStrategies")
        if _is_missing(strategies):
            return

        if not isinstance(strategies, list) or not strategies:
            result.errors.append(
                _finding(
                    "error",
                    "field_validation",
                    "Must have at least one credential exchange strategy",
                    context,
                    "credentialExchangeStrategies",
                )
            )
            return

        for index, strategy in enumerate(strategies):
            item_context = f"{context}.credentialExchangeStrategies[{index}]"
            strategy = _as_mapping(strategy, item_context)
            type_ = strategy.get("type")
            if _is_missing(type_):
                result.errors.append(
                    _finding(
                        "error",
                        "field_validation",
                        "Credential exchange strategy must have a type",
                        item_context,
                        "type",
                    )
                )
                continue
            if type_ not in _STANDARD_CREDENTIAL_STRATEGIES:
                result.warnings.append(
                    _finding(
                        "warning",
                        "field_validation",
                        f"Non-standard credential exchange strategy: {type_}",
                        item_context,
                        "type",
                        type_,
                    )
                )
            if type_ == "oauth2" and _is_missing(strategy.get("callbackUrl")):
                result.errors.append(
                    _finding(
                        "error",
                        "field_validation",
                        "OAuth2 strategy requires a callback URL",
                        item_context,
                        "callbackUrl",
                    )
                )

    # ------------------------------------------------------------------
    # Phase 3: 相互参照
    # ------------------------------------------------------------------

    @staticmethod
    def _records(metadata: dict[str, Any], collection: str) -> list[dict[str, Any]]:
        records = metadata.get(collection)
        if records is None:
            return []
        return [
            _as_mapping(record, f"{collection}[{index}]")
            for index, record in enumerate(_as_list(records, collection))
        ]

    def _check_cross_references(self, metadata: dict[str, Any], result: ValidationResult) -> None:
        declared: list[str] = []
        for collection in _DECLARATION_ORDER:
            for record in self._records(metadata, collection):
                ord_id = record.get("ordId")
                if isinstance(ord_id, str) and ord_id:
                    declared.append(ord_id)
        known = set(declared)

        for index, product in enumerate(self._records(metadata, "products")):
            vendor = product.get("vendor")
            if isinstance(vendor, str) and vendor and vendor not in known:
                result.warnings.append(
                    _finding(
                        "warning",
                        "cross_reference",
                        f"Product {product.get('ordId') or 'unknown'} references unknown vendor: {vendor}",
                        f"products[{index}]",
                        "vendor",
                        vendor,
                    )
                )

        for index, bundle in enumerate(self._records(metadata, "consumptionBundles")):
            context = f"consumptionBundles[{index}]"
            for key, label in (("apiResources", "API resource"), ("eventResources", "event resource")):
                references = bundle.get(key)
                if not references:
                    continue
                for reference in _as_list(references, f"{context}.{key}"):
                    ref_id = reference.get("ordId") if isinstance(reference, dict) else reference
                    if isinstance(ref_id, str) and ref_id and ref_id not in known:
                        result.errors.append(
                            _finding(
                                "error",
                                "cross_reference",
                                f"Consumption bundle {bundle.get('ordId') or 'unknown'} "
                                f"references unknown {label}: {ref_id}",
                                context,
                                key,
                                ref_id,
                            )
                        )

        for ord_id, count in Counter(declared).items():
            if count > 1:
                result.errors.append(
                    _finding(
                        "error",
                        "cross_reference",
                        f"Duplicate ORD ID found: {ord_id} (declared {count} times)",
                        value=ord_id,
                    )
                )


def load_metadata_file(path: str) -> Any:
    """ORDメタデータのJSONファイルを読み込む。

    package.json が指定された場合は "open-resource-discovery" セクションを返す。

    Raises:
        FileReadError: ファイルを読めない、またはJSONとして解釈できない場合。
    """
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as e:
        raise FileReadError(path, str(e)) from e
    except json.JSONDecodeError as e:
        raise FileReadError(path, f"invalid JSON: {e}") from e
    if isinstance(data, dict) and isinstance(data.get("open-resource-discovery"), dict):
        return data["open-resource-discovery"]
    return data
