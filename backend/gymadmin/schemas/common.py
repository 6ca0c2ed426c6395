"""レスポンス共通形式 {success, message, data}"""
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional


def envelope(data: Any = None, message: str = "") -> dict:
    """成功レスポンス"""
    body = {"success": True, "message": message}
    if data is not None:
        body["data"] = data
    return body


def error_body(message: str) -> dict:
    """失敗レスポンス"""
    return {"success": False, "message": message}


def iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def money(value: Optional[Decimal]) -> Optional[str]:
    """金額は小数2桁の文字列で返す (浮動小数点誤差を避ける)"""
    if value is None:
        return None
    return str(Decimal(value).quantize(Decimal("0.01")))


def page_info(total: int, page: int, limit: int) -> dict:
    return {
        "total": total,
        "page": page,
        "limit": limit,
        "total_pages": (total + limit - 1) // limit if limit else 0,
    }
