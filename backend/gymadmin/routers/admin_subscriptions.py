"""管理画面: 購読管理 (一覧・詳細・窓口加入・解約・延長)"""
from typing import Literal, Optional
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from gymadmin.core.clock import utcnow
from gymadmin.core.database import get_db
from gymadmin.core.rate_limit import limiter, ADMIN_WRITE_RATE_LIMIT
from gymadmin.models.plan import SubscriptionPlan
from gymadmin.models.subscription import UserSubscription
from gymadmin.models.user import User
from gymadmin.routers.deps import require_admin
from gymadmin.schemas.common import envelope
from gymadmin.schemas.subscription import (
    CancelSubscriptionRequest,
    ExtendSubscriptionRequest,
    PendingSubscriptionRequest,
    WalkInSubscriptionRequest,
)
from gymadmin.services import lifecycle_service, payment_service, subscription_service

router = APIRouter(prefix="/api/admin/subscriptions", tags=["admin-subscriptions"])

StatusFilter = Literal["pending", "active", "expired", "cancelled"]
CategoryFilter = Literal["student", "staff", "public"]


def _subscription_detail(db: Session, sub: UserSubscription, with_payments: bool = True) -> dict:
    """購読 + プラン + 会員 (+ 決済履歴)"""
    plan = db.get(SubscriptionPlan, sub.plan_id)
    user = db.get(User, sub.user_id)
    data = subscription_service.subscription_to_dict(sub, utcnow(), plan, user)
    if with_payments:
        data["payments"] = [
            payment_service.payment_to_dict(p)
            for p in payment_service.payments_for_subscription(db, sub.id)
        ]
    return data


@router.get("")
async def list_subscriptions(
    status: Optional[StatusFilter] = None,
    user_category: Optional[CategoryFilter] = Query(None, alias="userCategory"),
    plan_id: Optional[int] = Query(None, alias="planId"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    _=Depends(require_admin),
):
    """購読一覧 (ステータスは期限を考慮した実効ステータスで絞り込み)"""
    result = subscription_service.list_subscriptions(
        db,
        utcnow(),
        status=status,
        user_category=user_category,
        plan_id=plan_id,
        page=page,
        limit=limit,
    )
    return envelope(result, "購読一覧を取得しました")


@router.get("/{subscription_id}")
async def get_subscription(
    subscription_id: int,
    db: Session = Depends(get_db),
    _=Depends(require_admin),
):
    """購読詳細 (決済履歴付き)"""
    sub = subscription_service.get_subscription(db, subscription_id)
    return envelope(_subscription_detail(db, sub), "購読を取得しました")


@router.post("/walk-in", status_code=201)
@limiter.limit(ADMIN_WRITE_RATE_LIMIT)
async def create_walk_in_subscription(
    request: Request,
    data: WalkInSubscriptionRequest,
    db: Session = Depends(get_db),
    admin: dict = Depends(require_admin),
):
    """窓口加入 (支払い済みで即時有効)"""
    sub = lifecycle_service.create_walk_in_subscription(
        db,
        user_id=data.user_id,
        plan_id=data.plan_id,
        amount_paid=data.amount_paid,
        payment_method=data.payment_method,
        actor=admin.get("email"),
    )
    return envelope(_subscription_detail(db, sub), "窓口加入を登録しました")


@router.post("/pending", status_code=201)
@limiter.limit(ADMIN_WRITE_RATE_LIMIT)
async def open_pending_subscription(
    request: Request,
    data: PendingSubscriptionRequest,
    db: Session = Depends(get_db),
    admin: dict = Depends(require_admin),
):
    """支払い待ち購読の作成 (受付で後払い)"""
    sub, _payment = lifecycle_service.open_pending_subscription(
        db,
        user_id=data.user_id,
        plan_id=data.plan_id,
        auto_renew=data.auto_renew,
        actor=admin.get("email"),
    )
    return envelope(_subscription_detail(db, sub), "支払い待ちの購読を作成しました")


@router.patch("/{subscription_id}/cancel")
@limiter.limit(ADMIN_WRITE_RATE_LIMIT)
async def cancel_subscription(
    request: Request,
    subscription_id: int,
    data: Optional[CancelSubscriptionRequest] = None,
    db: Session = Depends(get_db),
    admin: dict = Depends(require_admin),
):
    """購読解約 (pending / active のみ)"""
    sub = lifecycle_service.cancel_subscription(
        db,
        subscription_id,
        reason=data.reason if data else None,
        actor=admin.get("email"),
    )
    return envelope(_subscription_detail(db, sub, with_payments=False), "購読を解約しました")


@router.patch("/{subscription_id}/extend")
@limiter.limit(ADMIN_WRITE_RATE_LIMIT)
async def extend_subscription(
    request: Request,
    subscription_id: int,
    data: ExtendSubscriptionRequest,
    db: Session = Depends(get_db),
    admin: dict = Depends(require_admin),
):
    """購読延長 (有効な購読のみ)"""
    sub = lifecycle_service.extend_subscription(
        db, subscription_id, data.days, actor=admin.get("email"),
    )
    return envelope(
        _subscription_detail(db, sub, with_payments=False),
        f"購読を{data.days}日延長しました",
    )
