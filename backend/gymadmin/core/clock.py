from datetime import datetime, timezone


def utcnow() -> datetime:
    """現在時刻 (UTC, naive)。DBのDateTime列はUTCのnaive値で保存する"""
    return datetime.now(timezone.utc).replace(tzinfo=None)
