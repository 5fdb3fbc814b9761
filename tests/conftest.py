"""テスト共通フィクスチャ。"""

import copy
from pathlib import Path
from typing import Any

import pytest

from ord_mcp.config import ServerConfig
from ord_mcp.services.annotation import AnnotationService
from ord_mcp.services.concepts import ConceptCatalog
from ord_mcp.services.examples import ExampleService
from ord_mcp.services.project import ProjectService
from ord_mcp.validators.metadata import MetadataValidator

_VALID_METADATA: dict[str, Any] = {
    "openResourceDiscoveryVersion": "1.9.0",
    "vendors": [{"ordId": "sap:vendor:SAP:v1", "title": "SAP SE"}],
    "products": [
        {
            "ordId": "sap:product:S4HANA:v1",
            "title": "SAP S/4HANA Cloud",
            "shortDescription": "Digital core for enterprise resource planning",
            "vendor": "sap:vendor:SAP:v1",
        }
    ],
    "capabilities": [
        {
            "ordId": "sap.s4:capability:salesorder:v1",
            "title": "Sales Order Management",
            "shortDescription": "Manage the sales order lifecycle",
            "type": "sap.mdo:capability-type:business-capability:v1",
        }
    ],
    "apiResources": [
        {
            "ordId": "sap.s4:apiResource:salesorder:v1",
            "title": "Sales Order API",
            "shortDescription": "OData API for sales orders",
            "apiProtocol": "odata-v4",
            "entryPoints": [{"type": "rest", "url": "/sap/opu/odata4/salesorder"}],
            "resourceDefinitions": [
                {"type": "edmx", "mediaType": "application/xml", "url": "/sap/opu/odata4/salesorder/$metadata"}
            ],
        }
    ],
    "eventResources": [
        {
            "ordId": "sap.s4:eventResource:salesorderevents:v1",
            "title": "Sales Order Events",
            "shortDescription": "Events of the sales order lifecycle",
            "eventResourceType": "BusinessEvent",
            "resourceDefinitions": [
                {"type": "asyncapi-v2", "mediaType": "application/json", "url": "/events/salesorder.json"}
            ],
        }
    ],
    "consumptionBundles": [
        {
            "ordId": "sap.s4:consumptionBundle:salesorder:v1",
            "title": "Sales Order Bundle",
            "shortDescription": "Sales order APIs and events with one credential set",
            "credentialExchangeStrategies": [{"type": "oauth2", "callbackUrl": "https://example.com/oauth/callback"}],
            "apiResources": [{"ordId": "sap.s4:apiResource:salesorder:v1"}],
            "eventResources": ["sap.s4:eventResource:salesorderevents:v1"],
        }
    ],
}

SAMPLE_CDS = """
namespace my.bookshop;
using { Currency, managed, cuid } from '@sap/cds/common';

@ORD.Extensions.product: 'BookshopProduct'
service CatalogService @(path: '/browse') {
    // 書籍エンティティ
    entity Books : cuid, managed {
        title  : String(111) @mandatory;
        stock  : Integer;
        price  : Decimal(9,2);
        status : String(20) @default('OPEN');
    }

    entity Authors as projection on my.Authors;

    /* イベント */
    event BookOrdered {
        book     : UUID;
        quantity : Integer;
    }

    action submitOrder(book: UUID, quantity: Integer) returns { stock: Integer };
    function stockLevel(book: UUID) returns Integer;
}
"""


@pytest.fixture
def config_dir() -> Path:
    """設定ファイルディレクトリ。"""
    return Path(__file__).parent.parent / "config"


@pytest.fixture
def catalog(config_dir: Path) -> ConceptCatalog:
    """テスト用ConceptCatalog。"""
    return ConceptCatalog.from_yaml(config_dir)


@pytest.fixture
def validator() -> MetadataValidator:
    return MetadataValidator()


@pytest.fixture
def valid_metadata() -> dict[str, Any]:
    """エラー・警告のない完全なORDメタデータ。"""
    return copy.deepcopy(_VALID_METADATA)


@pytest.fixture
def sample_cds() -> str:
    return SAMPLE_CDS


@pytest.fixture
def example_service(config_dir: Path) -> ExampleService:
    return ExampleService(config_dir=config_dir)


@pytest.fixture
def annotation_service() -> AnnotationService:
    return AnnotationService()


@pytest.fixture
def project_service(validator: MetadataValidator) -> ProjectService:
    """テスト用ProjectService。"""
    return ProjectService(validator=validator, scan_timeout=10.0, max_files=50)


@pytest.fixture
def server_config(config_dir: Path) -> ServerConfig:
    """テスト用ServerConfig。"""
    return ServerConfig(
        config_dir=config_dir,
        specification_url="https://spec.example.com/ord/index.md",
        request_timeout=2.0,
    )
