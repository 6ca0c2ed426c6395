"""管理画面: 決済管理 (一覧・詳細・再試行・支払い完了)"""
from datetime import date, datetime
from typing import Literal, Optional
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from gymadmin.core.clock import utcnow
from gymadmin.core.database import get_db
from gymadmin.core.rate_limit import limiter, ADMIN_WRITE_RATE_LIMIT
from gymadmin.models.plan import SubscriptionPlan
from gymadmin.models.user import User
from gymadmin.routers.deps import require_admin
from gymadmin.schemas.common import envelope
from gymadmin.schemas.payment import CompletePaymentRequest
from gymadmin.services import lifecycle_service, payment_service, subscription_service

router = APIRouter(prefix="/api/admin/payments", tags=["admin-payments"])

PaymentStatusFilter = Literal["pending", "completed", "failed", "cancelled"]


@router.get("")
async def list_payments(
    status: Optional[PaymentStatusFilter] = None,
    method: Optional[str] = None,
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    _=Depends(require_admin),
):
    """決済一覧"""
    result = payment_service.list_payments(
        db,
        status=status,
        method=method,
        start_date=datetime.combine(start_date, datetime.min.time()) if start_date else None,
        end_date=datetime.combine(end_date, datetime.max.time()) if end_date else None,
        page=page,
        limit=limit,
    )
    return envelope(result, "決済一覧を取得しました")


@router.get("/{payment_id}")
async def get_payment(
    payment_id: int,
    db: Session = Depends(get_db),
    _=Depends(require_admin),
):
    """決済詳細 (購読・プラン・会員情報付き)"""
    payment = payment_service.get_payment(db, payment_id)
    sub = subscription_service.get_subscription(db, payment.subscription_id)
    plan = db.get(SubscriptionPlan, sub.plan_id)
    user = db.get(User, sub.user_id)

    data = payment_service.payment_to_dict(payment)
    data["subscription"] = subscription_service.subscription_to_dict(sub, utcnow(), plan, user)
    return envelope(data, "決済を取得しました")


@router.post("/{payment_id}/retry")
@limiter.limit(ADMIN_WRITE_RATE_LIMIT)
async def retry_payment(
    request: Request,
    payment_id: int,
    db: Session = Depends(get_db),
    admin: dict = Depends(require_admin),
):
    """失敗・キャンセル済み決済の再試行"""
    payment = lifecycle_service.retry_payment(db, payment_id, actor=admin.get("email"))
    return envelope(payment_service.payment_to_dict(payment), "決済の再試行を開始しました")


@router.patch("/{payment_id}/complete")
@limiter.limit(ADMIN_WRITE_RATE_LIMIT)
async def complete_payment(
    request: Request,
    payment_id: int,
    data: CompletePaymentRequest,
    db: Session = Depends(get_db),
    admin: dict = Depends(require_admin),
):
    """支払い完了の記録 (購読が支払い待ちなら有効化)"""
    payment, activated = lifecycle_service.complete_pending_payment(
        db,
        payment_id,
        amount_paid=data.amount_paid,
        payment_method=data.payment_method,
        notes=data.notes,
        actor=admin.get("email"),
    )
    result = payment_service.payment_to_dict(payment)
    if activated is not None:
        result["subscription"] = subscription_service.subscription_to_dict(activated, utcnow())
    return envelope(result, "支払いを完了として記録しました")
