"""管理画面: 会員管理"""
from typing import Literal, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from gymadmin.core.clock import utcnow
from gymadmin.core.database import get_db, transaction
from gymadmin.models.plan import SubscriptionPlan
from gymadmin.models.subscription import UserSubscription
from gymadmin.routers.deps import require_admin
from gymadmin.schemas.common import envelope
from gymadmin.services import audit_service, subscription_service, user_service

router = APIRouter(prefix="/api/admin/users", tags=["admin-users"])


@router.get("")
async def list_users(
    category: Optional[Literal["student", "staff", "public"]] = None,
    search: Optional[str] = None,
    active: Optional[bool] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    _=Depends(require_admin),
):
    """会員一覧"""
    result = user_service.list_users(
        db, category=category, search=search, is_active=active, page=page, limit=limit,
    )
    return envelope(result, "会員一覧を取得しました")


@router.get("/{user_id}")
async def get_user(
    user_id: int,
    db: Session = Depends(get_db),
    _=Depends(require_admin),
):
    """会員詳細 (購読履歴付き)"""
    user = user_service.get_user(db, user_id)
    now = utcnow()
    subs = (
        db.query(UserSubscription)
        .filter(UserSubscription.user_id == user_id)
        .order_by(UserSubscription.created_at.desc(), UserSubscription.id.desc())
        .all()
    )
    data = user_service.user_to_dict(user)
    data["subscriptions"] = [
        subscription_service.subscription_to_dict(s, now, db.get(SubscriptionPlan, s.plan_id))
        for s in subs
    ]
    return envelope(data, "会員を取得しました")


def _set_active(db: Session, user_id: int, is_active: bool, actor: Optional[str]) -> dict:
    with transaction(db):
        user = user_service.set_user_active(db, user_id, is_active)
        audit_service.record_event(
            db,
            "user_activated" if is_active else "user_deactivated",
            f"会員{'有効化' if is_active else '無効化'}: {user.email}",
            user_id=user.id,
            actor=actor,
        )
    return user_service.user_to_dict(user)


@router.patch("/{user_id}/activate")
async def activate_user(
    user_id: int,
    db: Session = Depends(get_db),
    admin: dict = Depends(require_admin),
):
    return envelope(_set_active(db, user_id, True, admin.get("email")), "会員を有効化しました")


@router.patch("/{user_id}/deactivate")
async def deactivate_user(
    user_id: int,
    db: Session = Depends(get_db),
    admin: dict = Depends(require_admin),
):
    """会員無効化 (既存の購読はそのまま)"""
    return envelope(_set_active(db, user_id, False, admin.get("email")), "会員を無効化しました")
