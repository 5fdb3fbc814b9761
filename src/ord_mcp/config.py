"""ORD MCPサーバーの設定管理。"""

from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings

_PACKAGE_ROOT = Path(__file__).parent
_REPO_ROOT = _PACKAGE_ROOT.parent.parent

SERVER_NAME = "ord-mcp"
SERVER_VERSION = "0.1.0"

ORD_SPEC_URL = "https://raw.githubusercontent.com/open-resource-discovery/specification/main/docs/spec-v1/index.md"


class ServerConfig(BaseSettings):
    """サーバー設定。環境変数から読み込み可能。"""

    model_config = {"env_prefix": "ORD_MCP_"}

    config_dir: Path = _REPO_ROOT / "config"
    host: str = "0.0.0.0"
    port: int = 8000
    transport: Literal["streamable-http", "stdio"] = "streamable-http"
    url_token: str = ""
    log_level: str = "INFO"

    # ORD仕様書の取得
    specification_url: str = ORD_SPEC_URL
    request_timeout: float = 10.0

    # CAPプロジェクト解析
    project_scan_timeout: float = 30.0
    max_project_files: int = 2000
