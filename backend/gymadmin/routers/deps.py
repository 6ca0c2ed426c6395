"""共通依存関数: 管理者認証"""
from typing import Optional
from fastapi import Request, HTTPException, Depends

from gymadmin.core.session import extract_session_id, get_redis, get_session

ADMIN_ROLES = ("admin", "super_admin")


async def get_current_admin(request: Request, r=Depends(get_redis)) -> Optional[dict]:
    """Cookie/Bearer → Redis でセッション取得。未ログインならNone"""
    session_id = extract_session_id(request)
    if not session_id:
        return None
    return await get_session(r, session_id)


async def require_admin(session: Optional[dict] = Depends(get_current_admin)) -> dict:
    """管理者権限必須。未ログインなら401、権限不足なら403"""
    if session is None:
        raise HTTPException(status_code=401, detail="ログインが必要です")
    if session.get("role") not in ADMIN_ROLES:
        raise HTTPException(status_code=403, detail="管理者権限が必要です")
    return session
