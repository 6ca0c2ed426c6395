"""購読台帳: UserSubscription の作成と状態遷移

状態遷移:
    (なし) --窓口加入--> active --解約--> cancelled
    pending --決済完了--> active
    pending --解約--> cancelled
    active --end_date経過--> expired (読み取り時に判定、スケジューラで確定)

ここの関数は flush のみ行い、commit は lifecycle_service の作業単位に任せる。
"""
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional
from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from gymadmin.core.config import settings
from gymadmin.models.plan import SubscriptionPlan
from gymadmin.models.subscription import UserSubscription
from gymadmin.models.user import User
from gymadmin.schemas.common import iso, money, page_info
from gymadmin.services.errors import (
    InvalidExtension,
    InvalidTransition,
    PlanInactive,
    SubscriptionNotActive,
    SubscriptionNotFound,
    UserCategoryMismatch,
)

CANCELLABLE_STATUSES = ("pending", "active")


def effective_status(sub: UserSubscription, now: datetime) -> str:
    """現在時刻を考慮したステータス (期限切れの active は expired とみなす)"""
    if sub.status == "active" and sub.end_date is not None and sub.end_date < now:
        return "expired"
    return sub.status


def get_subscription(db: Session, subscription_id: int, for_update: bool = False) -> UserSubscription:
    q = db.query(UserSubscription).filter(UserSubscription.id == subscription_id)
    if for_update:
        q = q.with_for_update()
    sub = q.first()
    if not sub:
        raise SubscriptionNotFound()
    return sub


def ensure_eligible(user: User, plan: SubscriptionPlan) -> None:
    """加入資格チェック: 販売中 かつ 会員区分一致"""
    if not plan.is_active:
        raise PlanInactive()
    if plan.user_category != user.category:
        raise UserCategoryMismatch(
            f"このプランは{plan.user_category}会員向けですが、会員区分は{user.category}です"
        )


def create_walk_in(
    db: Session,
    user: User,
    plan: SubscriptionPlan,
    amount_paid: Decimal,
    currency: str,
    payment_reference: str,
    now: datetime,
) -> UserSubscription:
    """窓口加入: その場で支払い済みのため active/completed で作成"""
    ensure_eligible(user, plan)
    sub = UserSubscription(
        user_id=user.id,
        plan_id=plan.id,
        status="active",
        payment_status="completed",
        start_date=now,
        end_date=now + timedelta(days=plan.duration_days),
        payment_reference=payment_reference,
        amount_paid=amount_paid,
        currency=currency,
        auto_renew=False,
    )
    db.add(sub)
    db.flush()
    return sub


def create_pending(
    db: Session,
    user: User,
    plan: SubscriptionPlan,
    currency: str,
    payment_reference: str,
    auto_renew: bool = False,
) -> UserSubscription:
    """支払い待ちの購読を作成 (期間は決済完了時に確定)"""
    ensure_eligible(user, plan)
    sub = UserSubscription(
        user_id=user.id,
        plan_id=plan.id,
        status="pending",
        payment_status="pending",
        payment_reference=payment_reference,
        amount_paid=plan.price_amount,
        currency=currency,
        auto_renew=auto_renew,
    )
    db.add(sub)
    db.flush()
    return sub


def cancel(db: Session, sub: UserSubscription, now: datetime) -> UserSubscription:
    """解約。終了日・支払額は変更せず、返金も行わない"""
    if effective_status(sub, now) not in CANCELLABLE_STATUSES:
        raise InvalidTransition()
    sub.status = "cancelled"
    sub.cancelled_at = now
    db.flush()
    return sub


def extend(db: Session, sub: UserSubscription, additional_days: int, now: datetime) -> UserSubscription:
    """有効期限の延長 (1〜MAX_EXTENSION_DAYS日)"""
    if (
        isinstance(additional_days, bool)
        or not isinstance(additional_days, int)
        or not 1 <= additional_days <= settings.MAX_EXTENSION_DAYS
    ):
        raise InvalidExtension(f"延長日数は1〜{settings.MAX_EXTENSION_DAYS}日で指定してください")
    if effective_status(sub, now) != "active" or sub.end_date is None:
        raise SubscriptionNotActive()
    sub.end_date = sub.end_date + timedelta(days=additional_days)
    db.flush()
    return sub


def activate(
    db: Session,
    sub: UserSubscription,
    plan: SubscriptionPlan,
    amount_paid: Decimal,
    now: datetime,
) -> UserSubscription:
    """支払い待ち → 有効化。期間が未設定ならプランの日数で確定する"""
    sub.status = "active"
    sub.payment_status = "completed"
    sub.amount_paid = amount_paid
    if sub.start_date is None:
        sub.start_date = now
    if sub.end_date is None:
        sub.end_date = sub.start_date + timedelta(days=plan.duration_days)
    db.flush()
    return sub


def expire_lapsed(db: Session, now: datetime) -> list[int]:
    """end_date を過ぎた active を expired に確定し、対象IDを返す"""
    subs = db.query(UserSubscription).filter(
        UserSubscription.status == "active",
        UserSubscription.end_date != None,
        UserSubscription.end_date < now,
    ).with_for_update().all()
    for sub in subs:
        sub.status = "expired"
    if subs:
        db.flush()
    return [s.id for s in subs]


def _status_condition(status: str, now: datetime):
    """一覧フィルタ用: 実効ステータスでの絞り込み条件"""
    if status == "active":
        return and_(
            UserSubscription.status == "active",
            or_(UserSubscription.end_date == None, UserSubscription.end_date >= now),
        )
    if status == "expired":
        return or_(
            UserSubscription.status == "expired",
            and_(UserSubscription.status == "active", UserSubscription.end_date < now),
        )
    return UserSubscription.status == status


def list_subscriptions(
    db: Session,
    now: datetime,
    status: Optional[str] = None,
    user_category: Optional[str] = None,
    plan_id: Optional[int] = None,
    user_id: Optional[int] = None,
    page: int = 1,
    limit: int = 20,
) -> dict:
    """購読一覧 (新しい順、ページング)"""
    q = (
        db.query(UserSubscription, SubscriptionPlan, User)
        .join(SubscriptionPlan, UserSubscription.plan_id == SubscriptionPlan.id)
        .join(User, UserSubscription.user_id == User.id)
    )
    if status:
        q = q.filter(_status_condition(status, now))
    if user_category:
        q = q.filter(User.category == user_category)
    if plan_id:
        q = q.filter(UserSubscription.plan_id == plan_id)
    if user_id:
        q = q.filter(UserSubscription.user_id == user_id)

    total = q.count()
    rows = (
        q.order_by(UserSubscription.created_at.desc(), UserSubscription.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return {
        "subscriptions": [subscription_to_dict(sub, now, plan, user) for sub, plan, user in rows],
        **page_info(total, page, limit),
    }


def subscription_to_dict(
    sub: UserSubscription,
    now: datetime,
    plan: Optional[SubscriptionPlan] = None,
    user: Optional[User] = None,
) -> dict:
    data = {
        "id": sub.id,
        "user_id": sub.user_id,
        "plan_id": sub.plan_id,
        "status": sub.status,
        "effective_status": effective_status(sub, now),
        "payment_status": sub.payment_status,
        "start_date": iso(sub.start_date),
        "end_date": iso(sub.end_date),
        "payment_reference": sub.payment_reference,
        "amount_paid": money(sub.amount_paid),
        "currency": sub.currency,
        "auto_renew": sub.auto_renew,
        "cancelled_at": iso(sub.cancelled_at),
        "created_at": iso(sub.created_at),
        "updated_at": iso(sub.updated_at),
    }
    if plan is not None:
        data.update({
            "plan_name": plan.name,
            "plan_user_category": plan.user_category,
            "duration_type": plan.duration_type,
            "plan_price": money(plan.price_amount),
            "duration_days": plan.duration_days,
        })
    if user is not None:
        data.update({
            "user_name": user.full_name,
            "user_email": user.email,
            "user_category": user.category,
            "university_id": user.university_id,
        })
    return data
