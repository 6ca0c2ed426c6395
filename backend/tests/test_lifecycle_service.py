from datetime import timedelta
from decimal import Decimal

import pytest

from gymadmin.core.clock import utcnow
from gymadmin.models import PaymentTransaction, SystemLog, UserSubscription
from gymadmin.services import lifecycle_service, payment_service, plan_service, subscription_service
from gymadmin.services.errors import (
    AlreadyCompleted,
    InvalidTransition,
    NotRetryable,
    PaymentNotFound,
    PlanInactive,
    PlanNotFound,
    SubscriptionNotActive,
    SubscriptionNotFound,
    UserCategoryMismatch,
    UserNotFound,
)


def _counts(db):
    return db.query(UserSubscription).count(), db.query(PaymentTransaction).count()


def _expire_now(db, sub):
    """テスト用: 終了日を過去にずらす (ステータスは active のまま)"""
    sub.end_date = utcnow() - timedelta(days=1)
    db.commit()


# --- 窓口加入 ---

def test_walk_in_creates_active_subscription_and_completed_payment(db, make_user):
    user = make_user("student")
    plan = plan_service.create_plan(
        db, name="Student Monthly", user_category="student", duration_type="monthly",
        price_amount=Decimal("50.00"), duration_days=30,
    )
    db.commit()

    sub = lifecycle_service.create_walk_in_subscription(db, user.id, plan.id, Decimal("50.00"))

    assert sub.status == "active"
    assert sub.payment_status == "completed"
    assert sub.end_date - sub.start_date == timedelta(days=30)
    assert sub.amount_paid == Decimal("50.00")
    assert sub.payment_reference.startswith("WALKIN_")

    payments = db.query(PaymentTransaction).filter(PaymentTransaction.subscription_id == sub.id).all()
    assert len(payments) == 1
    assert payments[0].status == "completed"
    assert payments[0].amount == Decimal("50.00")
    assert payments[0].payment_method == "cash"
    assert payments[0].payment_reference == sub.payment_reference
    assert payments[0].paid_at is not None


def test_walk_in_records_audit_event(db, make_user, make_plan):
    user = make_user("staff")
    plan = make_plan("staff")

    sub = lifecycle_service.create_walk_in_subscription(
        db, user.id, plan.id, Decimal("50.00"), payment_method="mobile_money", actor="desk@example.com",
    )

    log = db.query(SystemLog).filter(SystemLog.event_type == "walk_in_subscription_created").one()
    assert log.subscription_id == sub.id
    assert log.actor == "desk@example.com"
    assert log.details["payment_method"] == "mobile_money"


def test_walk_in_rolls_back_when_payment_insert_fails(db, make_user, make_plan, monkeypatch):
    user = make_user("student")
    plan = make_plan("student")

    def _boom(*args, **kwargs):
        raise RuntimeError("payment insert failed")

    monkeypatch.setattr(payment_service, "record_for_subscription", _boom)

    with pytest.raises(RuntimeError):
        lifecycle_service.create_walk_in_subscription(db, user.id, plan.id, Decimal("50.00"))

    assert _counts(db) == (0, 0)
    assert db.query(SystemLog).count() == 0


def test_walk_in_rolls_back_when_audit_fails(db, make_user, make_plan, monkeypatch):
    user = make_user("student")
    plan = make_plan("student")

    from gymadmin.services import audit_service

    def _boom(*args, **kwargs):
        raise RuntimeError("audit failed")

    monkeypatch.setattr(audit_service, "record_event", _boom)

    with pytest.raises(RuntimeError):
        lifecycle_service.create_walk_in_subscription(db, user.id, plan.id, Decimal("50.00"))

    assert _counts(db) == (0, 0)


@pytest.mark.parametrize(
    "user_category,plan_category",
    [("student", "staff"), ("student", "public"), ("staff", "student"), ("public", "student")],
)
def test_walk_in_rejects_category_mismatch(db, make_user, make_plan, user_category, plan_category):
    user = make_user(user_category)
    plan = make_plan(plan_category)

    with pytest.raises(UserCategoryMismatch):
        lifecycle_service.create_walk_in_subscription(db, user.id, plan.id, Decimal("50.00"))

    assert _counts(db) == (0, 0)


def test_walk_in_unknown_plan_or_user(db, make_user, make_plan):
    user = make_user("student")
    plan = make_plan("student")

    with pytest.raises(PlanNotFound):
        lifecycle_service.create_walk_in_subscription(db, user.id, 9999, Decimal("50.00"))
    with pytest.raises(UserNotFound):
        lifecycle_service.create_walk_in_subscription(db, 9999, plan.id, Decimal("50.00"))
    assert _counts(db) == (0, 0)


def test_walk_in_rejects_inactive_plan_and_user(db, make_user, make_plan):
    plan = make_plan("student", is_active=False)
    user = make_user("student")
    with pytest.raises(PlanInactive):
        lifecycle_service.create_walk_in_subscription(db, user.id, plan.id, Decimal("50.00"))

    active_plan = make_plan("student", duration_type="yearly", days=365)
    inactive_user = make_user("student", is_active=False)
    with pytest.raises(UserNotFound):
        lifecycle_service.create_walk_in_subscription(db, inactive_user.id, active_plan.id, Decimal("50.00"))
    assert _counts(db) == (0, 0)


def test_plan_edit_does_not_change_existing_subscription(db, make_user, make_plan):
    user = make_user("student")
    plan = make_plan("student", price="50.00", days=30)
    sub = lifecycle_service.create_walk_in_subscription(db, user.id, plan.id, Decimal("50.00"))
    end_date = sub.end_date

    plan_service.update_plan(db, plan.id, {"price_amount": Decimal("80.00"), "duration_days": 60})
    db.commit()
    db.refresh(sub)

    assert sub.amount_paid == Decimal("50.00")
    assert sub.end_date == end_date


# --- 解約 ---

def test_cancel_then_extend_fails(db, make_user, make_plan):
    user = make_user("student")
    plan = make_plan("student")
    sub = lifecycle_service.create_walk_in_subscription(db, user.id, plan.id, Decimal("50.00"))
    end_date = sub.end_date

    cancelled = lifecycle_service.cancel_subscription(db, sub.id, reason="User request")
    assert cancelled.status == "cancelled"
    assert cancelled.cancelled_at is not None
    assert cancelled.end_date == end_date

    log = db.query(SystemLog).filter(SystemLog.event_type == "subscription_cancelled").one()
    assert log.details["reason"] == "User request"

    with pytest.raises(SubscriptionNotActive):
        lifecycle_service.extend_subscription(db, sub.id, 30)


def test_cancel_pending_subscription(db, make_user, make_plan):
    user = make_user("public", university_id=None)
    plan = make_plan("public")
    sub, payment = lifecycle_service.open_pending_subscription(db, user.id, plan.id)

    cancelled = lifecycle_service.cancel_subscription(db, sub.id)
    assert cancelled.status == "cancelled"
    # 決済側はそのまま
    db.refresh(payment)
    assert payment.status == "pending"


def test_cancel_twice_fails(db, make_user, make_plan):
    user = make_user("student")
    plan = make_plan("student")
    sub = lifecycle_service.create_walk_in_subscription(db, user.id, plan.id, Decimal("50.00"))
    lifecycle_service.cancel_subscription(db, sub.id)

    with pytest.raises(InvalidTransition):
        lifecycle_service.cancel_subscription(db, sub.id)


def test_cancel_expired_fails(db, make_user, make_plan):
    user = make_user("student")
    plan = make_plan("student")
    sub = lifecycle_service.create_walk_in_subscription(db, user.id, plan.id, Decimal("50.00"))
    _expire_now(db, sub)

    with pytest.raises(InvalidTransition):
        lifecycle_service.cancel_subscription(db, sub.id)

    db.refresh(sub)
    assert sub.status == "active"
    assert sub.cancelled_at is None


def test_cancel_unknown_subscription(db):
    with pytest.raises(SubscriptionNotFound):
        lifecycle_service.cancel_subscription(db, 12345)


# --- 延長 ---

def test_extend_active_subscription(db, make_user, make_plan):
    user = make_user("student")
    plan = make_plan("student")
    sub = lifecycle_service.create_walk_in_subscription(db, user.id, plan.id, Decimal("50.00"))
    end_date = sub.end_date

    extended = lifecycle_service.extend_subscription(db, sub.id, 14)
    assert extended.end_date == end_date + timedelta(days=14)
    assert extended.status == "active"


def test_extend_pending_or_expired_fails(db, make_user, make_plan):
    user = make_user("student")
    plan = make_plan("student")
    pending, _ = lifecycle_service.open_pending_subscription(db, user.id, plan.id)
    with pytest.raises(SubscriptionNotActive):
        lifecycle_service.extend_subscription(db, pending.id, 30)

    active = lifecycle_service.create_walk_in_subscription(db, user.id, plan.id, Decimal("50.00"))
    _expire_now(db, active)
    with pytest.raises(SubscriptionNotActive):
        lifecycle_service.extend_subscription(db, active.id, 30)


# --- 支払い待ち → 完了 ---

def test_complete_pending_payment_activates_subscription(db, make_user, make_plan):
    user = make_user("staff")
    plan = make_plan("staff", price="100.00", days=30)
    sub, payment = lifecycle_service.open_pending_subscription(db, user.id, plan.id)

    assert sub.status == "pending"
    assert sub.payment_status == "pending"
    assert sub.amount_paid == Decimal("100.00")
    assert sub.start_date is None
    assert payment.status == "pending"
    assert payment.amount == Decimal("100.00")

    completed, activated = lifecycle_service.complete_pending_payment(
        db, payment.id, Decimal("100.00"), "cash", notes="paid at front desk",
    )

    assert completed.status == "completed"
    assert completed.paid_at is not None
    assert completed.payment_method == "cash"
    assert completed.gateway_response["events"][-1]["notes"] == "paid at front desk"
    assert activated is not None
    assert activated.id == sub.id
    assert activated.status == "active"
    assert activated.payment_status == "completed"
    assert activated.end_date - activated.start_date == timedelta(days=30)


def test_complete_payment_for_active_subscription_leaves_it_unchanged(db, make_user, make_plan):
    user = make_user("student")
    plan = make_plan("student")
    sub = lifecycle_service.create_walk_in_subscription(db, user.id, plan.id, Decimal("50.00"))
    end_date = sub.end_date

    extra = payment_service.open_pending(
        db, sub, Decimal("20.00"), "GHS", payment_service.generate_reference(), utcnow(),
    )
    db.commit()

    completed, activated = lifecycle_service.complete_pending_payment(db, extra.id, Decimal("20.00"), "card")
    assert completed.status == "completed"
    assert activated is None
    db.refresh(sub)
    assert sub.end_date == end_date
    assert sub.amount_paid == Decimal("50.00")


def test_complete_already_completed_payment_fails(db, make_user, make_plan):
    user = make_user("student")
    plan = make_plan("student")
    sub = lifecycle_service.create_walk_in_subscription(db, user.id, plan.id, Decimal("50.00"))
    payment = payment_service.payments_for_subscription(db, sub.id)[0]

    with pytest.raises(AlreadyCompleted):
        lifecycle_service.complete_pending_payment(db, payment.id, Decimal("50.00"), "cash")


def test_complete_pending_payment_rolls_back_when_activation_fails(db, make_user, make_plan, monkeypatch):
    user = make_user("staff")
    plan = make_plan("staff", price="100.00")
    sub, payment = lifecycle_service.open_pending_subscription(db, user.id, plan.id)
    sub_id, payment_id = sub.id, payment.id

    def _boom(*args, **kwargs):
        raise RuntimeError("activation failed")

    monkeypatch.setattr(subscription_service, "activate", _boom)

    with pytest.raises(RuntimeError):
        lifecycle_service.complete_pending_payment(db, payment_id, Decimal("100.00"), "cash")

    db.expire_all()
    payment = db.get(PaymentTransaction, payment_id)
    sub = db.get(UserSubscription, sub_id)
    assert payment.status == "pending"
    assert payment.paid_at is None
    assert sub.status == "pending"
    assert sub.payment_status == "pending"
    assert sub.start_date is None
    assert db.query(SystemLog).filter(SystemLog.event_type == "payment_completed").count() == 0


def test_complete_unknown_payment(db):
    with pytest.raises(PaymentNotFound):
        lifecycle_service.complete_pending_payment(db, 777, Decimal("10.00"), "cash")


# --- 再試行 ---

def test_retry_failed_payment_then_retry_again_fails(db, make_user, make_plan):
    user = make_user("student")
    plan = make_plan("student")
    _, payment = lifecycle_service.open_pending_subscription(db, user.id, plan.id)
    payment.status = "failed"
    db.commit()

    retried = lifecycle_service.retry_payment(db, payment.id)
    assert retried.status == "pending"
    assert retried.gateway_response["events"][-1]["action"] == "retry"
    assert retried.gateway_response["events"][-1]["previous_status"] == "failed"

    with pytest.raises(NotRetryable):
        lifecycle_service.retry_payment(db, payment.id)


def test_retry_cancelled_payment(db, make_user, make_plan):
    user = make_user("student")
    plan = make_plan("student")
    _, payment = lifecycle_service.open_pending_subscription(db, user.id, plan.id)
    payment.status = "cancelled"
    db.commit()

    assert lifecycle_service.retry_payment(db, payment.id).status == "pending"


def test_retry_completed_payment_fails(db, make_user, make_plan):
    user = make_user("student")
    plan = make_plan("student")
    sub = lifecycle_service.create_walk_in_subscription(db, user.id, plan.id, Decimal("50.00"))
    payment = payment_service.payments_for_subscription(db, sub.id)[0]

    with pytest.raises(NotRetryable):
        lifecycle_service.retry_payment(db, payment.id)
    db.refresh(payment)
    assert payment.status == "completed"


# --- 期限切れ ---

def test_expire_subscriptions_materializes_lapsed_rows(db, make_user, make_plan):
    user = make_user("student")
    plan = make_plan("student")
    lapsed = lifecycle_service.create_walk_in_subscription(db, user.id, plan.id, Decimal("50.00"))
    current = lifecycle_service.create_walk_in_subscription(db, user.id, plan.id, Decimal("50.00"))
    _expire_now(db, lapsed)

    assert lifecycle_service.expire_subscriptions(db) == 1

    db.refresh(lapsed)
    db.refresh(current)
    assert lapsed.status == "expired"
    assert current.status == "active"
    log = db.query(SystemLog).filter(SystemLog.event_type == "subscriptions_expired").one()
    assert log.details["subscription_ids"] == [lapsed.id]

    # 2回目は対象なし
    assert lifecycle_service.expire_subscriptions(db) == 0


def test_get_subscription_is_idempotent(db, make_user, make_plan):
    user = make_user("student")
    plan = make_plan("student")
    sub = lifecycle_service.create_walk_in_subscription(db, user.id, plan.id, Decimal("50.00"))
    now = utcnow()

    first = subscription_service.subscription_to_dict(subscription_service.get_subscription(db, sub.id), now)
    second = subscription_service.subscription_to_dict(subscription_service.get_subscription(db, sub.id), now)
    assert first == second
