"""管理者セッションストア (Redis)

セッションは外部の認証基盤が `session:{id}` ハッシュとして発行する。
本コンソールは読み取りとアイドルTTLの延長のみ行う。
発行・破棄は運用スクリプト (create_admin_session) 専用。
"""
import secrets
import time
from typing import Optional
import redis.asyncio as aioredis
from starlette.requests import Request
from gymadmin.core.config import settings

SESSION_PREFIX = "session:"
SESSION_TTL = settings.SESSION_TIMEOUT_MINUTES * 60  # 秒
SESSION_FIELDS = ("admin_id", "role", "email")

_pool = aioredis.ConnectionPool.from_url(
    settings.REDIS_URL,
    max_connections=20,
    decode_responses=True,
)


async def get_redis() -> aioredis.Redis:
    """FastAPI依存関数: セッションストアのクライアント"""
    return aioredis.Redis(connection_pool=_pool)


async def ping() -> bool:
    """ヘルスチェック用"""
    try:
        r = await get_redis()
        return bool(await r.ping())
    except Exception:
        return False


def extract_session_id(request: Request) -> Optional[str]:
    """Cookie優先、なければ Authorization: Bearer <session_id>"""
    session_id = request.cookies.get("session_id")
    if session_id:
        return session_id
    auth = request.headers.get("Authorization", "")
    if auth.lower().startswith("bearer "):
        return auth[7:].strip() or None
    return None


def _key(session_id: str) -> str:
    return f"{SESSION_PREFIX}{session_id}"


async def get_session(r: aioredis.Redis, session_id: str) -> Optional[dict]:
    """セッション取得。必須項目が欠けたものは無効として扱う"""
    if not session_id:
        return None
    data = await r.hgetall(_key(session_id))
    if not data or any(not data.get(f) for f in SESSION_FIELDS):
        return None
    # アイドルタイムアウトをリセット
    await r.expire(_key(session_id), SESSION_TTL)
    await r.hset(_key(session_id), "last_accessed", str(int(time.time())))
    return data


async def create_session(r: aioredis.Redis, admin_id: int, role: str, email: str) -> str:
    """セッション発行 (外部基盤と同じ形式)"""
    session_id = secrets.token_hex(32)
    now = str(int(time.time()))
    await r.hset(
        _key(session_id),
        mapping={
            "admin_id": str(admin_id),
            "role": role,
            "email": email,
            "created_at": now,
            "last_accessed": now,
        },
    )
    await r.expire(_key(session_id), SESSION_TTL)
    return session_id


async def destroy_session(r: aioredis.Redis, session_id: str) -> bool:
    """セッション破棄。存在した場合 True"""
    if not session_id:
        return False
    return bool(await r.delete(_key(session_id)))
