"""購読・決済ライフサイクルの調整役

購読台帳と決済台帳の両方を書き換える操作はすべてここを通す。
各操作は1つのトランザクションで実行し、途中で失敗した場合は全体をロールバックする。
(部分的に適用された状態は外部から観測されない)
"""
from decimal import Decimal
from typing import Optional
from sqlalchemy.orm import Session

from gymadmin.core.clock import utcnow
from gymadmin.core.config import settings
from gymadmin.core.database import transaction
from gymadmin.core.logging import get_logger, log_event
from gymadmin.models.payment_transaction import PaymentTransaction
from gymadmin.models.subscription import UserSubscription
from gymadmin.services import audit_service, payment_service, plan_service, subscription_service, user_service

logger = get_logger(__name__)

WALK_IN_PAYMENT_METHOD = "cash"


def create_walk_in_subscription(
    db: Session,
    user_id: int,
    plan_id: int,
    amount_paid: Decimal,
    payment_method: str = WALK_IN_PAYMENT_METHOD,
    actor: Optional[str] = None,
) -> UserSubscription:
    """窓口加入: 購読と完了済み決済を同時に作成 (どちらか一方だけ残ることはない)"""
    now = utcnow()
    currency = settings.DEFAULT_CURRENCY

    with transaction(db):
        plan = plan_service.get_active_plan(db, plan_id)
        user = user_service.get_active_user(db, user_id)
        reference = payment_service.generate_reference("WALKIN")

        sub = subscription_service.create_walk_in(
            db, user, plan, amount_paid, currency, reference, now,
        )
        payment = payment_service.record_for_subscription(
            db, sub, amount_paid, currency, payment_method, now, payment_reference=reference,
        )
        audit_service.record_event(
            db,
            "walk_in_subscription_created",
            f"窓口加入: {plan.name}",
            user_id=user.id,
            subscription_id=sub.id,
            payment_id=payment.id,
            actor=actor,
            details={"amount_paid": str(amount_paid), "payment_method": payment_method},
        )

    log_event(logger, "窓口加入作成", subscription_id=sub.id, user_id=user_id, plan_id=plan_id, actor=actor)
    return sub


def open_pending_subscription(
    db: Session,
    user_id: int,
    plan_id: int,
    auto_renew: bool = False,
    actor: Optional[str] = None,
) -> tuple[UserSubscription, PaymentTransaction]:
    """支払い待ちの購読と決済を同時に作成 (オンライン申込の受付)"""
    now = utcnow()
    currency = settings.DEFAULT_CURRENCY

    with transaction(db):
        plan = plan_service.get_active_plan(db, plan_id)
        user = user_service.get_active_user(db, user_id)
        reference = payment_service.generate_reference("GYM")

        sub = subscription_service.create_pending(
            db, user, plan, currency, reference, auto_renew=auto_renew,
        )
        payment = payment_service.open_pending(
            db, sub, plan.price_amount, currency, reference, now,
        )
        audit_service.record_event(
            db,
            "pending_subscription_opened",
            f"支払い待ち購読作成: {plan.name}",
            user_id=user.id,
            subscription_id=sub.id,
            payment_id=payment.id,
            actor=actor,
        )

    log_event(logger, "支払い待ち購読作成", subscription_id=sub.id, payment_id=payment.id, actor=actor)
    return sub, payment


def complete_pending_payment(
    db: Session,
    payment_id: int,
    amount_paid: Decimal,
    payment_method: str,
    notes: Optional[str] = None,
    actor: Optional[str] = None,
) -> tuple[PaymentTransaction, Optional[UserSubscription]]:
    """決済完了の記録。購読が支払い待ちなら同時に有効化する。

    戻り値: (決済, 有効化した購読 or None)
    購読が既に active の場合 (追加支払いなど) は購読を変更しない。
    """
    now = utcnow()
    activated = None

    with transaction(db):
        payment = payment_service.get_payment(db, payment_id, for_update=True)
        sub = subscription_service.get_subscription(db, payment.subscription_id, for_update=True)

        payment_service.mark_completed(db, payment, amount_paid, payment_method, now, notes=notes)

        if sub.status == "pending":
            plan = plan_service.get_plan(db, sub.plan_id)
            activated = subscription_service.activate(db, sub, plan, amount_paid, now)

        audit_service.record_event(
            db,
            "payment_completed",
            "支払い完了を記録" + (" (購読を有効化)" if activated else ""),
            user_id=sub.user_id,
            subscription_id=sub.id,
            payment_id=payment.id,
            actor=actor,
            details={
                "amount_paid": str(amount_paid),
                "payment_method": payment_method,
                "notes": notes,
                "subscription_activated": activated is not None,
            },
        )

    log_event(
        logger,
        "決済完了",
        payment_id=payment_id,
        subscription_id=payment.subscription_id,
        activated=activated is not None,
        actor=actor,
    )
    return payment, activated


def retry_payment(db: Session, payment_id: int, actor: Optional[str] = None) -> PaymentTransaction:
    """失敗・キャンセル済み決済の再試行 (pendingに戻すのみ)"""
    now = utcnow()

    with transaction(db):
        payment = payment_service.get_payment(db, payment_id, for_update=True)
        previous = payment.status
        payment_service.retry(db, payment, now)
        audit_service.record_event(
            db,
            "payment_retry",
            "決済の再試行を開始",
            subscription_id=payment.subscription_id,
            payment_id=payment.id,
            actor=actor,
            details={"previous_status": previous},
        )

    log_event(logger, "決済再試行", payment_id=payment_id, previous_status=previous, actor=actor)
    return payment


def cancel_subscription(
    db: Session,
    subscription_id: int,
    reason: Optional[str] = None,
    actor: Optional[str] = None,
) -> UserSubscription:
    """購読の解約 (pending / active のみ)"""
    now = utcnow()

    with transaction(db):
        sub = subscription_service.get_subscription(db, subscription_id, for_update=True)
        previous = subscription_service.effective_status(sub, now)
        subscription_service.cancel(db, sub, now)
        audit_service.record_event(
            db,
            "subscription_cancelled",
            "購読を解約",
            user_id=sub.user_id,
            subscription_id=sub.id,
            actor=actor,
            details={"reason": reason, "previous_status": previous},
        )

    log_event(logger, "購読解約", subscription_id=subscription_id, reason=reason, actor=actor)
    return sub


def extend_subscription(
    db: Session,
    subscription_id: int,
    additional_days: int,
    actor: Optional[str] = None,
) -> UserSubscription:
    """有効な購読の終了日を延長"""
    now = utcnow()

    with transaction(db):
        sub = subscription_service.get_subscription(db, subscription_id, for_update=True)
        previous_end = sub.end_date
        subscription_service.extend(db, sub, additional_days, now)
        audit_service.record_event(
            db,
            "subscription_extended",
            f"購読を{additional_days}日延長",
            user_id=sub.user_id,
            subscription_id=sub.id,
            actor=actor,
            details={
                "days": additional_days,
                "previous_end_date": previous_end.isoformat() if previous_end else None,
                "new_end_date": sub.end_date.isoformat(),
            },
        )

    log_event(logger, "購読延長", subscription_id=subscription_id, days=additional_days, actor=actor)
    return sub


def expire_subscriptions(db: Session, actor: str = "scheduler") -> int:
    """期限切れの active を expired に確定 (スケジューラから呼ばれる)"""
    now = utcnow()

    with transaction(db):
        expired_ids = subscription_service.expire_lapsed(db, now)
        if expired_ids:
            audit_service.record_event(
                db,
                "subscriptions_expired",
                f"{len(expired_ids)}件の購読を期限切れに更新",
                actor=actor,
                details={"subscription_ids": expired_ids},
            )

    if expired_ids:
        log_event(logger, f"期限切れ確定: {len(expired_ids)}件", subscription_ids=expired_ids)
    return len(expired_ids)
