"""ORD MCPサーバーのカスタム例外クラス。"""


class OrdMcpError(Exception):
    """ORD MCPサーバーの基底例外クラス。"""


class InvalidArgumentError(OrdMcpError):
    """呼び出し側の引数が不正な場合の例外。"""


class UnknownConceptError(OrdMcpError):
    """カタログに存在しないORDコンセプトが指定された場合の例外。"""

    def __init__(self, concept: str, available: list[str]) -> None:
        super().__init__(f"Unknown concept: {concept}. Available concepts: {', '.join(available)}")
        self.concept = concept
        self.available = available


class CatalogError(OrdMcpError):
    """静的データ（コンセプト・サンプル定義）の読み込みエラー。"""


class SpecificationFetchError(OrdMcpError):
    """ORD仕様書の取得に失敗した場合の例外。"""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class SpecificationTimeoutError(SpecificationFetchError):
    """ORD仕様書の取得がタイムアウトした場合の例外。"""

    def __init__(self, timeout: float) -> None:
        super().__init__(f"Request timeout after {timeout:g}s while fetching ORD specification")
        self.timeout = timeout


class FileReadError(OrdMcpError):
    """入力ファイルの読み込みに失敗した場合の例外。"""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Failed to read file {path}: {reason}")
        self.path = path


class ProjectNotFoundError(OrdMcpError):
    """解析対象のプロジェクトディレクトリが存在しない場合の例外。"""

    def __init__(self, project_path: str) -> None:
        super().__init__(f"Project directory not found: {project_path}")
        self.project_path = project_path


class ProjectScanTimeoutError(OrdMcpError):
    """プロジェクト走査が制限時間内に終わらなかった場合の例外。"""

    def __init__(self, project_path: str, timeout: float) -> None:
        super().__init__(f"Project scan timed out after {timeout:g}s: {project_path}")
        self.project_path = project_path
        self.timeout = timeout
