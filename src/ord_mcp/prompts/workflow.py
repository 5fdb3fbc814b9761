"""ORD対応ワークフローのMCPプロンプト定義。"""

from fastmcp import FastMCP


def register_workflow_prompts(mcp: FastMCP) -> None:
    """ワークフロー系のMCPプロンプトを登録する。"""

    def _notes() -> str:
        return (
            "## 注意事項\n\n"
            "- ORD IDは `namespace:type:localId:v<メジャーバージョン>` 形式にしてください。\n"
            "- バリデーション結果のerrorは必ず対応してください。warningとsuggestionsは推奨事項です。\n"
            "- 不明なコンセプトは `list_ord_concepts` で一覧を確認してから `explain_ord_concept` で調べてください。\n"
        )

    @mcp.prompt()
    async def annotate_cap_service(service_path: str = "") -> str:
        """CAPサービスにORDアノテーションを付与するワークフロー。

        Args:
            service_path: 対象の.cdsファイルのパス（任意）。
        """
        target = f"`{service_path}`" if service_path else "対象のCDSサービス定義"
        return (
            "# CAPサービスへのORDアノテーション付与\n\n"
            f"{target} をOpen Resource Discovery (ORD) で公開できるようにします。\n\n"
            "## 手順\n\n"
            "1. `explain_ord_concept` で Product・Capability・APIResource・EventResource を確認してください。\n"
            "2. `generate_ord_annotation` を `annotation_type=\"comprehensive\"` で実行してください。\n"
            "3. 生成された `cds_code` を元に、既存の定義を壊さないようアノテーションを追記してください。\n"
            "4. `package_json` の内容を package.json の `open-resource-discovery` セクションに反映してください。\n"
            "5. `validate_ord_metadata` を `strict=true` で実行し、errorがなくなるまで修正してください。\n"
            "6. 必要に応じて `get_ord_examples` で類似のサンプルを参照してください。\n\n"
            + _notes()
        )

    @mcp.prompt()
    async def review_ord_metadata(metadata_path: str = "") -> str:
        """既存のORDメタデータをレビューするワークフロー。

        Args:
            metadata_path: メタデータJSONまたはpackage.jsonのパス（任意）。
        """
        target = f"`{metadata_path}`" if metadata_path else "ORDメタデータ"
        return (
            "# ORDメタデータのレビュー\n\n"
            f"{target} を検証し、改善点を報告します。\n\n"
            "## 手順\n\n"
            "1. `validate_ord_metadata` を `strict=true` で実行してください。\n"
            "2. errors を重要度の高いものから順に、修正案とともに説明してください。\n"
            "3. cross_reference の指摘は、参照先のORD IDが宣言されているかを確認してください。\n"
            "4. CAPプロジェクトの場合は `analyze_cap_project` でサービス側のアノテーション漏れも確認してください。\n\n"
            + _notes()
        )
