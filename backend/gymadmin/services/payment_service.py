"""決済台帳: PaymentTransaction の作成と状態遷移

pending ⇄ {completed, failed, cancelled}
failed / cancelled --retry--> pending
completed は終端 (返金は未対応)

決済代行との通信は行わない。retry は再試行の意思を記録するのみ。
"""
import secrets
import time
from datetime import datetime
from decimal import Decimal
from typing import Optional
from sqlalchemy.orm import Session

from gymadmin.models.payment_transaction import PaymentTransaction
from gymadmin.models.plan import SubscriptionPlan
from gymadmin.models.subscription import UserSubscription
from gymadmin.models.user import User
from gymadmin.schemas.common import iso, money, page_info
from gymadmin.services.errors import AlreadyCompleted, NotRetryable, PaymentNotFound

RETRYABLE_STATUSES = ("failed", "cancelled")


def generate_reference(prefix: str = "GYM") -> str:
    """決済参照番号を採番 (例: WALKIN_1718000000000_A1B2C3D4)"""
    return f"{prefix}_{int(time.time() * 1000)}_{secrets.token_hex(4).upper()}"


def _append_event(payment: PaymentTransaction, action: str, message: str, now: datetime, **extra) -> None:
    """gateway_response の events に操作履歴を追記"""
    response = dict(payment.gateway_response or {})
    events = list(response.get("events", []))
    event = {"action": action, "message": message, "at": now.isoformat()}
    event.update({k: v for k, v in extra.items() if v is not None})
    events.append(event)
    response["events"] = events
    # JSON列は再代入しないと変更検知されない
    payment.gateway_response = response


def get_payment(db: Session, payment_id: int, for_update: bool = False) -> PaymentTransaction:
    q = db.query(PaymentTransaction).filter(PaymentTransaction.id == payment_id)
    if for_update:
        q = q.with_for_update()
    payment = q.first()
    if not payment:
        raise PaymentNotFound()
    return payment


def record_for_subscription(
    db: Session,
    subscription: UserSubscription,
    amount: Decimal,
    currency: str,
    payment_method: str,
    now: datetime,
    payment_reference: Optional[str] = None,
) -> PaymentTransaction:
    """窓口での支払いを完了済みとして記録"""
    payment = PaymentTransaction(
        subscription_id=subscription.id,
        payment_reference=payment_reference or generate_reference(),
        amount=amount,
        currency=currency,
        status="completed",
        payment_method=payment_method,
        paid_at=now,
    )
    _append_event(payment, "recorded", "窓口で支払いを受領", now)
    db.add(payment)
    db.flush()
    return payment


def open_pending(
    db: Session,
    subscription: UserSubscription,
    amount: Decimal,
    currency: str,
    payment_reference: str,
    now: datetime,
    payment_method: Optional[str] = None,
) -> PaymentTransaction:
    """支払い待ちの決済を作成"""
    payment = PaymentTransaction(
        subscription_id=subscription.id,
        payment_reference=payment_reference,
        amount=amount,
        currency=currency,
        status="pending",
        payment_method=payment_method,
    )
    _append_event(payment, "opened", "支払い待ち", now)
    db.add(payment)
    db.flush()
    return payment


def retry(db: Session, payment: PaymentTransaction, now: datetime) -> PaymentTransaction:
    """失敗・キャンセル済みの決済を pending に戻す"""
    if payment.status not in RETRYABLE_STATUSES:
        raise NotRetryable()
    previous = payment.status
    payment.status = "pending"
    _append_event(payment, "retry", "管理者が再試行を開始", now, previous_status=previous)
    db.flush()
    return payment


def mark_completed(
    db: Session,
    payment: PaymentTransaction,
    amount_paid: Decimal,
    payment_method: str,
    now: datetime,
    notes: Optional[str] = None,
) -> PaymentTransaction:
    """決済を完了にする (完了済みは不可)"""
    if payment.status == "completed":
        raise AlreadyCompleted()
    payment.status = "completed"
    payment.amount = amount_paid
    payment.payment_method = payment_method
    payment.paid_at = now
    _append_event(payment, "completed", "管理者が支払い完了を記録", now, notes=notes)
    db.flush()
    return payment


def payments_for_subscription(db: Session, subscription_id: int) -> list[PaymentTransaction]:
    return db.query(PaymentTransaction).filter(
        PaymentTransaction.subscription_id == subscription_id
    ).order_by(PaymentTransaction.created_at.desc(), PaymentTransaction.id.desc()).all()


def list_payments(
    db: Session,
    status: Optional[str] = None,
    method: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    subscription_id: Optional[int] = None,
    page: int = 1,
    limit: int = 20,
) -> dict:
    """決済一覧 (新しい順、ページング)"""
    q = (
        db.query(PaymentTransaction, UserSubscription, SubscriptionPlan, User)
        .join(UserSubscription, PaymentTransaction.subscription_id == UserSubscription.id)
        .join(SubscriptionPlan, UserSubscription.plan_id == SubscriptionPlan.id)
        .join(User, UserSubscription.user_id == User.id)
    )
    if status:
        q = q.filter(PaymentTransaction.status == status)
    if method:
        q = q.filter(PaymentTransaction.payment_method.ilike(f"%{method}%"))
    if start_date:
        q = q.filter(PaymentTransaction.created_at >= start_date)
    if end_date:
        q = q.filter(PaymentTransaction.created_at <= end_date)
    if subscription_id:
        q = q.filter(PaymentTransaction.subscription_id == subscription_id)

    total = q.count()
    rows = (
        q.order_by(PaymentTransaction.created_at.desc(), PaymentTransaction.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    transactions = []
    for payment, sub, plan, user in rows:
        data = payment_to_dict(payment)
        data.update({
            "subscription_status": sub.status,
            "plan_name": plan.name,
            "user_name": user.full_name,
            "user_email": user.email,
            "user_category": user.category,
        })
        transactions.append(data)
    return {"transactions": transactions, **page_info(total, page, limit)}


def payment_to_dict(payment: PaymentTransaction) -> dict:
    return {
        "id": payment.id,
        "subscription_id": payment.subscription_id,
        "payment_reference": payment.payment_reference,
        "gateway_reference": payment.gateway_reference,
        "amount": money(payment.amount),
        "currency": payment.currency,
        "status": payment.status,
        "payment_method": payment.payment_method,
        "gateway_response": payment.gateway_response,
        "paid_at": iso(payment.paid_at),
        "created_at": iso(payment.created_at),
        "updated_at": iso(payment.updated_at),
    }
