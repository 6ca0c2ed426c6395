from fastapi import APIRouter
from fastapi.responses import JSONResponse

from gymadmin.core import session
from gymadmin.core.config import settings
from gymadmin.core.database import check_db_connection

router = APIRouter(tags=["health"])


@router.get("/health")
@router.get("/api/health")
async def health_check():
    """ヘルスチェック。DBに接続できなければ503 (Redis停止時は管理APIのみ不可)"""
    db_ok = check_db_connection()
    redis_ok = await session.ping()

    data = {
        "service": settings.SITE_NAME,
        "env": settings.ENV,
        "db": "connected" if db_ok else "disconnected",
        "session_store": "connected" if redis_ok else "disconnected",
    }
    if not db_ok:
        return JSONResponse(
            status_code=503,
            content={"success": False, "message": "データベースに接続できません", "data": data},
        )
    return {
        "success": True,
        "message": "ok" if redis_ok else "degraded",
        "data": data,
    }
