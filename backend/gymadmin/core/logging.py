"""構造化ログ (1行1JSON)

ライフサイクル操作は log_event で subscription_id / payment_id などを
data に載せて出力し、監査ログ (system_logs) と突き合わせられるようにする。
"""
import logging
import sys
import json
from datetime import datetime, timezone

SERVICE_NAME = "gymadmin"


class JSONFormatter(logging.Formatter):
    """構造化JSONログフォーマッター"""

    def __init__(self, env: str = "development"):
        super().__init__()
        self.env = env

    def format(self, record):
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "service": SERVICE_NAME,
            "env": self.env,
            "logger": record.name,
            "message": record.getMessage(),
        }
        data = getattr(record, "extra_data", None)
        if data:
            log_entry["data"] = data
        if record.exc_info and record.exc_info[0]:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, ensure_ascii=False, default=str)


def setup_logging(debug: bool = False, env: str = "development"):
    """ロギング設定を初期化"""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter(env=env))

    root = logging.getLogger()
    root.setLevel(logging.DEBUG if debug else logging.INFO)
    root.handlers.clear()
    root.addHandler(handler)

    # SQLAlchemy・APScheduler・slowapiの過剰ログを抑制
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("apscheduler").setLevel(logging.WARNING)
    logging.getLogger("slowapi").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.INFO)


def get_logger(name: str) -> logging.Logger:
    """名前付きロガーを取得"""
    return logging.getLogger(name)


def log_event(logger: logging.Logger, message: str, level: int = logging.INFO, **data) -> None:
    """メッセージ + 構造化データを1行で出力 (None の項目は省く)"""
    logger.log(level, message, extra={"extra_data": {k: v for k, v in data.items() if v is not None}})
