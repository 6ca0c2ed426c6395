"""レート制限 (slowapi)

管理APIは受付端末を複数の管理者で共有することがあるため、
セッションがあればセッション単位、なければクライアントIP単位で数える。
"""
import hashlib

from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from starlette.requests import Request
from starlette.responses import JSONResponse

from gymadmin.core.config import settings
from gymadmin.core.session import extract_session_id

# 購読・決済・プランの更新系
ADMIN_WRITE_RATE_LIMIT = "30/minute"


def get_client_ip(request: Request) -> str:
    """プロキシ経由ならX-Forwarded-Forの先頭"""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return get_remote_address(request)


def rate_limit_key(request: Request) -> str:
    """セッションIDのハッシュ (生のIDはストレージに残さない)、なければIP"""
    session_id = extract_session_id(request)
    if session_id:
        return "session:" + hashlib.sha256(session_id.encode()).hexdigest()[:16]
    return "ip:" + get_client_ip(request)


limiter = Limiter(
    key_func=rate_limit_key,
    storage_uri="memory://",
    enabled=settings.RATE_LIMIT_ENABLED,
)


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    return JSONResponse(
        status_code=429,
        content={
            "success": False,
            "message": "リクエスト回数が上限を超えました。しばらく待ってから再度お試しください。",
            "retry_after": exc.detail,
        },
    )
