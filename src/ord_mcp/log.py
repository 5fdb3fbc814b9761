"""ロギング設定。"""

import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """ルートロガーを標準エラー出力に向けて設定する。

    stdioトランスポートでは標準出力がMCPプロトコルに使われるため、
    ログは必ず標準エラー出力へ書き出す。
    """
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level.upper())
    # httpxはリクエストごとにINFOログを出すため抑制する
    logging.getLogger("httpx").setLevel(logging.WARNING)
