"""CDSサービス定義からORDアノテーションを生成するサービス。"""

import logging
import re
import unicodedata
from pathlib import Path
from typing import Any

from ord_mcp.analyzers.cds import parse_cds
from ord_mcp.models.annotation import (
    AnnotationExplanation,
    AnnotationResult,
    GeneratedAnnotation,
    Recommendation,
    ServiceAnnotations,
)
from ord_mcp.models.cds import CdsModel, CdsService
from ord_mcp.models.errors import FileReadError, InvalidArgumentError

logger = logging.getLogger(__name__)

DEFAULT_NAMESPACE = "company"
ORD_VERSION = "1.9.0"
BUSINESS_CAPABILITY_TYPE = "sap.mdo:capability-type:business-capability:v1"
DEFAULT_CALLBACK_URL = "https://example.com/oauth/callback"

# str.format で展開するため、CDSの波括弧は {{ }} でエスケープする
_ANNOTATION_TEMPLATES: dict[str, dict[str, str]] = {
    "basic": {
        "product": "@ORD.Extensions.product: '{product_id}'",
        "capability": "@ORD.Extensions.capability: '{capability_id}'",
        "apiResource": """@ORD.Extensions.apiResource: {{
    ordId: '{ord_id}',
    title: '{title}',
    shortDescription: '{short_description}',
    apiProtocol: '{protocol}'
}}""",
        "eventResource": """@ORD.Extensions.eventResource: {{
    ordId: '{ord_id}',
    title: '{title}',
    shortDescription: '{short_description}',
    eventResourceType: 'BusinessEvent'
}}""",
    },
    "comprehensive": {
        "product": "@ORD.Extensions.product: '{product_id}'",
        "capability": "@ORD.Extensions.capability: '{capability_id}'",
        "apiResource": """@ORD.Extensions.apiResource: {{
    ordId: '{ord_id}',
    title: '{title}',
    shortDescription: '{short_description}',
    description: '{description}',
    apiProtocol: '{protocol}',
    resourceDefinitions: [{{
        type: '{definition_type}',
        mediaType: '{media_type}',
        url: '{definition_url}'
    }}],
    entryPoints: [{{
        type: 'rest',
        url: '{entry_point_url}'
    }}],
    labels: {{
        domain: ['{domain}']
    }}
}}""",
        "eventResource": """@ORD.Extensions.eventResource: {{
    ordId: '{ord_id}',
    title: '{title}',
    shortDescription: '{short_description}',
    description: '{description}',
    eventResourceType: 'BusinessEvent',
    resourceDefinitions: [{{
        type: 'asyncapi-v2',
        mediaType: 'application/json',
        url: '/events/schemas/{event_name}-schema.json'
    }}],
    labels: {{
        domain: ['{domain}']
    }}
}}""",
        "consumptionBundle": """@ORD.Extensions.consumptionBundle: {{
    ordId: '{ord_id}',
    title: '{title}',
    shortDescription: '{short_description}',
    credentialExchangeStrategies: [{{
        type: 'oauth2',
        callbackUrl: '{callback_url}'
    }}]
}}""",
    },
    "minimal": {
        "product": "@ORD.Extensions.product: '{product_id}'",
        "capability": "@ORD.Extensions.capability: '{capability_id}'",
        "apiResource": """@ORD.Extensions.apiResource: {{
    ordId: '{ord_id}',
    title: '{title}',
    shortDescription: '{short_description}'
}}""",
        "eventResource": """@ORD.Extensions.eventResource: {{
    ordId: '{ord_id}',
    title: '{title}',
    shortDescription: '{short_description}'
}}""",
    },
}

ANNOTATION_TYPES: tuple[str, ...] = tuple(_ANNOTATION_TEMPLATES)

_DOMAIN_KEYWORDS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("order", "sales"), "Sales"),
    (("product", "catalog"), "Product Management"),
    (("customer", "account"), "Customer Management"),
    (("inventory", "stock"), "Inventory"),
    (("finance", "accounting"), "Finance"),
    (("hr", "employee"), "Human Resources"),
)


_ID_SEGMENT_INVALID = re.compile(r"[^a-zA-Z0-9._-]")


def _id_segment(text: str) -> str:
    # アクセント記号は落とし、それ以外のID非許容文字は "_" に置き換える
    decomposed = unicodedata.normalize("NFKD", text)
    stripped = "".join(c for c in decomposed if not unicodedata.combining(c))
    return _ID_SEGMENT_INVALID.sub("_", stripped)


def ord_id(namespace: str, kind: str, name: str) -> str:
    """`<namespace>:<kind>:<name小文字>:v1` 形式のORD IDを生成する。

    CDSの識別子はUnicode文字を含み得るため、namespaceとnameは
    `[a-zA-Z0-9._-]` の範囲に正規化する。
    """
    return f"{_id_segment(namespace)}:{kind}:{_id_segment(name.lower())}:v1"


def infer_domain(service_name: str) -> str:
    name = service_name.lower()
    for keywords, domain in _DOMAIN_KEYWORDS:
        if any(k in name for k in keywords):
            return domain
    return "Business Process"


def _api_protocol(service: CdsService) -> str:
    return "odata-v4" if service.entities else "rest"


def _entry_point(service: CdsService) -> str:
    return service.path or f"/{service.name.lower()}"


class AnnotationService:
    """CDSサービス定義から @ORD.Extensions アノテーションを生成する。"""

    def generate(
        self,
        service_definition: str | None = None,
        service_path: str | None = None,
        annotation_type: str = "basic",
    ) -> AnnotationResult:
        """CDSサービスに対するORDアノテーションを生成する。

        Args:
            service_definition: CDSソース文字列。
            service_path: CDSファイルのパス。service_definitionと排他。
            annotation_type: basic / comprehensive / minimal。

        Returns:
            サービスごとのアノテーションと推奨事項。comprehensiveの場合は
            package.json用のORDメタデータも含む。

        Raises:
            InvalidArgumentError: 入力の指定が不正な場合。
            FileReadError: service_pathのファイルを読めない場合。
        """
        if (service_definition is None) == (service_path is None):
            raise InvalidArgumentError("Exactly one of service_definition or service_path must be provided")
        if annotation_type not in _ANNOTATION_TEMPLATES:
            raise InvalidArgumentError(
                f"Unknown annotation_type: {annotation_type}. Expected one of: {', '.join(ANNOTATION_TYPES)}"
            )

        if service_path is not None:
            content = self._read_service_file(service_path)
        else:
            content = service_definition or ""

        model = parse_cds(content)
        namespace = model.namespace or DEFAULT_NAMESPACE
        templates = _ANNOTATION_TEMPLATES[annotation_type]

        result = AnnotationResult(annotation_type=annotation_type)
        for service in model.services:
            result.services.append(self._service_annotations(service, templates, namespace))
        if annotation_type == "comprehensive":
            result.package_json = build_package_metadata(model)
        result.recommendations = self._recommendations(model)

        logger.info(
            "Generated %s annotations for %d services",
            annotation_type,
            len(result.services),
        )
        return result

    @staticmethod
    def _read_service_file(service_path: str) -> str:
        try:
            return Path(service_path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise FileReadError(service_path, str(e)) from e

    def _service_annotations(
        self,
        service: CdsService,
        templates: dict[str, str],
        namespace: str,
    ) -> ServiceAnnotations:
        annotations = [
            GeneratedAnnotation(
                type="product",
                code=templates["product"].format(product_id=ord_id(namespace, "product", service.name)),
            ),
            GeneratedAnnotation(
                type="capability",
                code=templates["capability"].format(capability_id=ord_id(namespace, "capability", service.name)),
            ),
        ]

        domain = infer_domain(service.name)
        if service.entities:
            protocol = _api_protocol(service)
            is_odata = protocol.startswith("odata")
            code = templates["apiResource"].format(
                ord_id=ord_id(namespace, "api", service.name),
                title=f"{service.name} API",
                short_description=f"{protocol.upper()} API for {service.name.lower()} operations",
                description=(
                    f"{protocol.upper()} API providing CRUD operations for {service.name.lower()} "
                    f"entities including {', '.join(e.name for e in service.entities)}."
                ),
                protocol=protocol,
                definition_type="edmx" if is_odata else "openapi-v3",
                media_type="application/xml" if is_odata else "application/json",
                definition_url="$metadata" if is_odata else "/openapi.json",
                entry_point_url=_entry_point(service),
                domain=domain,
            )
            annotations.append(GeneratedAnnotation(type="apiResource", code=code))

        for event in service.events:
            code = templates["eventResource"].format(
                ord_id=ord_id(namespace, "event", event.name),
                title=f"{event.name} Event",
                short_description=f"Event emitted when {event.name.lower()} occurs",
                description=(
                    f"Business event representing {event.name.lower()} state changes"
                    f" with payload containing {', '.join(e.name for e in event.elements) or 'no elements'}."
                ),
                event_name=event.name.lower(),
                domain=domain,
            )
            annotations.append(
                GeneratedAnnotation(type="eventResource", code=code, context="event", event_name=event.name)
            )

        if "consumptionBundle" in templates and (service.entities or service.events):
            code = templates["consumptionBundle"].format(
                ord_id=ord_id(namespace, "consumption-bundle", service.name),
                title=f"{service.name} Bundle",
                short_description=f"APIs and events of {service.name} consumable with one credential set",
                callback_url=DEFAULT_CALLBACK_URL,
            )
            annotations.append(GeneratedAnnotation(type="consumptionBundle", code=code))

        return ServiceAnnotations(
            service_name=service.name,
            annotations=annotations,
            cds_code=_annotated_service_code(service, annotations),
            explanations=_explanations(service, annotations),
        )

    @staticmethod
    def _recommendations(model: CdsModel) -> list[Recommendation]:
        recommendations = []
        if not model.services:
            recommendations.append(
                Recommendation(
                    type="warning",
                    message="No services found in the provided content",
                    suggestion="Ensure the service definition is complete and properly formatted",
                )
            )
        if len(model.services) > 1:
            recommendations.append(
                Recommendation(
                    type="improvement",
                    message="Multiple services detected",
                    suggestion="Consider grouping related services into consumption bundles for better organization",
                )
            )
        for service in model.services:
            if not service.entities and not service.events:
                recommendations.append(
                    Recommendation(
                        type="warning",
                        message=f"Service {service.name} has no entities or events",
                        suggestion="Empty services should either be removed or populated with business logic",
                    )
                )
        return recommendations


def _indent(code: str, prefix: str = "    ") -> str:
    return "\n".join(prefix + line for line in code.splitlines())


def _annotated_service_code(service: CdsService, annotations: list[GeneratedAnnotation]) -> str:
    lines = [a.code for a in annotations if a.context == "service"]
    header = f"service {service.name}"
    if service.path:
        header += f" @(path: '{service.path}')"
    lines.append(header + " {")

    for entity in service.entities:
        lines.append(f"    entity {entity.name} {{")
        lines.extend(f"        {el.name}: {el.type};" for el in entity.elements)
        lines.append("    }")
        lines.append("")

    event_codes = {a.event_name: a.code for a in annotations if a.event_name}
    for event in service.events:
        if event.name in event_codes:
            lines.append(_indent(event_codes[event.name]))
        lines.append(f"    event {event.name} {{")
        lines.extend(f"        {el.name}: {el.type};" for el in event.elements)
        lines.append("    }")
        lines.append("")

    for op in service.operations:
        params = ", ".join(f"{p.name}: {p.type}" for p in op.parameters)
        returns = f" returns {op.returns}" if op.returns else ""
        lines.append(f"    {op.kind} {op.name}({params}){returns};")

    lines.append("}")
    return "\n".join(lines)


def _explanations(service: CdsService, annotations: list[GeneratedAnnotation]) -> list[AnnotationExplanation]:
    explanations = [
        AnnotationExplanation(
            annotation="product",
            explanation=(
                "Associates the service with a business product. Products represent commercial "
                "offerings or logical groupings of capabilities."
            ),
        ),
        AnnotationExplanation(
            annotation="capability",
            explanation=(
                "Defines the business capability provided by this service. Capabilities represent "
                "specific business functionalities."
            ),
        ),
    ]
    if service.entities:
        explanations.append(
            AnnotationExplanation(
                annotation="apiResource",
                explanation=(
                    f"Defines the API resource for data access. This service exposes {len(service.entities)} "
                    f"entities through {_api_protocol(service).upper()} protocol."
                ),
            )
        )
    if service.events:
        explanations.append(
            AnnotationExplanation(
                annotation="eventResource",
                explanation=(
                    "Defines event resources for asynchronous communication. "
                    f"This service publishes {len(service.events)} business events."
                ),
            )
        )
    if any(a.type == "consumptionBundle" for a in annotations):
        explanations.append(
            AnnotationExplanation(
                annotation="consumptionBundle",
                explanation="Groups the service's APIs and events behind a shared OAuth2 credential exchange.",
            )
        )
    return explanations


def build_package_metadata(model: CdsModel) -> dict[str, Any]:
    """package.json の open-resource-discovery セクションを生成する。

    生成結果は MetadataValidator でエラーなしとなる構成にする。
    """
    namespace = model.namespace or DEFAULT_NAMESPACE
    vendor_id = ord_id(namespace, "vendor", "main")
    bundle_id = ord_id(namespace, "consumption-bundle", "main")

    capabilities: list[dict[str, Any]] = []
    api_resources: list[dict[str, Any]] = []
    event_resources: list[dict[str, Any]] = []
    seen: set[str] = set()

    for service in model.services:
        capability_id = ord_id(namespace, "capability", service.name)
        if capability_id not in seen:
            seen.add(capability_id)
            capabilities.append(
                {
                    "ordId": capability_id,
                    "title": f"{service.name} Capability",
                    "shortDescription": f"Business capability for {service.name.lower()} operations",
                    "type": BUSINESS_CAPABILITY_TYPE,
                }
            )

        domain = infer_domain(service.name)
        api_id = ord_id(namespace, "api", service.name)
        if service.entities and api_id not in seen:
            seen.add(api_id)
            protocol = _api_protocol(service)
            entry_point = _entry_point(service)
            api_resources.append(
                {
                    "ordId": api_id,
                    "title": f"{service.name} API",
                    "shortDescription": f"{protocol.upper()} API for {service.name.lower()}",
                    "apiProtocol": protocol,
                    "entryPoints": [{"type": "rest", "url": entry_point}],
                    "resourceDefinitions": [
                        {
                            "type": "edmx",
                            "mediaType": "application/xml",
                            "url": f"{entry_point.rstrip('/')}/$metadata",
                        }
                    ],
                    "partOfConsumptionBundles": [{"ordId": bundle_id}],
                    "labels": {"domain": [domain]},
                }
            )

        for event in service.events:
            event_id = ord_id(namespace, "event", event.name)
            if event_id in seen:
                continue
            seen.add(event_id)
            event_resources.append(
                {
                    "ordId": event_id,
                    "title": f"{event.name} Event",
                    "shortDescription": f"Event for {event.name.lower()} notifications",
                    "eventResourceType": "BusinessEvent",
                    "resourceDefinitions": [
                        {
                            "type": "asyncapi-v2",
                            "mediaType": "application/json",
                            "url": f"/events/schemas/{event.name.lower()}-schema.json",
                        }
                    ],
                    "partOfConsumptionBundles": [{"ordId": bundle_id}],
                    "labels": {"domain": [domain]},
                }
            )

    consumption_bundles: list[dict[str, Any]] = []
    if api_resources or event_resources:
        consumption_bundles.append(
            {
                "ordId": bundle_id,
                "title": "Main API Bundle",
                "shortDescription": "Complete bundle of APIs and events",
                "description": "Consumption bundle grouping every API and event resource of the project.",
                "credentialExchangeStrategies": [{"type": "oauth2", "callbackUrl": DEFAULT_CALLBACK_URL}],
                "apiResources": [{"ordId": r["ordId"]} for r in api_resources],
                "eventResources": [{"ordId": r["ordId"]} for r in event_resources],
            }
        )

    return {
        "open-resource-discovery": {
            "openResourceDiscoveryVersion": ORD_VERSION,
            "description": "ORD metadata for CAP services",
            "products": [
                {
                    "ordId": ord_id(namespace, "product", "main"),
                    "title": "Main Product",
                    "shortDescription": "Primary product containing all capabilities and resources",
                    "vendor": vendor_id,
                }
            ],
            "vendors": [{"ordId": vendor_id, "title": "Main Vendor"}],
            "capabilities": capabilities,
            "apiResources": api_resources,
            "eventResources": event_resources,
            "consumptionBundles": consumption_bundles,
        }
    }
