import re
from datetime import timedelta
from decimal import Decimal

from gymadmin.core.clock import utcnow
from gymadmin.services import lifecycle_service, payment_service


def test_generate_reference_format():
    ref = payment_service.generate_reference("WALKIN")
    assert re.fullmatch(r"WALKIN_\d{13}_[0-9A-F]{8}", ref)
    assert ref != payment_service.generate_reference("WALKIN")


def test_list_payments_filters(db, make_user, make_plan):
    user = make_user("student")
    plan = make_plan("student")
    lifecycle_service.create_walk_in_subscription(db, user.id, plan.id, Decimal("50.00"))
    lifecycle_service.create_walk_in_subscription(
        db, user.id, plan.id, Decimal("50.00"), payment_method="mobile_money",
    )
    _, pending = lifecycle_service.open_pending_subscription(db, user.id, plan.id)

    result = payment_service.list_payments(db, status="completed")
    assert result["total"] == 2

    result = payment_service.list_payments(db, method="mobile")
    assert result["total"] == 1
    assert result["transactions"][0]["payment_method"] == "mobile_money"
    assert result["transactions"][0]["user_email"] == user.email

    result = payment_service.list_payments(db, status="pending")
    assert [t["id"] for t in result["transactions"]] == [pending.id]

    tomorrow = utcnow() + timedelta(days=1)
    assert payment_service.list_payments(db, start_date=tomorrow)["total"] == 0
    assert payment_service.list_payments(db, end_date=tomorrow)["total"] == 3


def test_payment_events_are_appended(db, make_user, make_plan):
    user = make_user("student")
    plan = make_plan("student")
    _, payment = lifecycle_service.open_pending_subscription(db, user.id, plan.id)

    payment.status = "failed"
    db.commit()
    lifecycle_service.retry_payment(db, payment.id)
    lifecycle_service.complete_pending_payment(db, payment.id, Decimal("50.00"), "card")

    db.refresh(payment)
    actions = [e["action"] for e in payment.gateway_response["events"]]
    assert actions == ["opened", "retry", "completed"]
    assert payment_service.payment_to_dict(payment)["amount"] == "50.00"
