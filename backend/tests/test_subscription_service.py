from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from gymadmin.core.clock import utcnow
from gymadmin.models import UserSubscription
from gymadmin.services import lifecycle_service, subscription_service
from gymadmin.services.errors import InvalidExtension, SubscriptionNotActive


def _sub(status="active", end_date=None):
    return UserSubscription(status=status, end_date=end_date)


def test_effective_status():
    now = datetime(2026, 5, 1, 12, 0, 0)
    assert subscription_service.effective_status(_sub("active", now + timedelta(days=1)), now) == "active"
    assert subscription_service.effective_status(_sub("active", now - timedelta(seconds=1)), now) == "expired"
    # 終了日ちょうどはまだ有効
    assert subscription_service.effective_status(_sub("active", now), now) == "active"
    assert subscription_service.effective_status(_sub("pending"), now) == "pending"
    assert subscription_service.effective_status(_sub("cancelled", now - timedelta(days=3)), now) == "cancelled"


@pytest.mark.parametrize("days", [0, -5, 366, True])
def test_extend_rejects_out_of_range_days(db, make_user, make_plan, days):
    user = make_user("student")
    plan = make_plan("student")
    sub = lifecycle_service.create_walk_in_subscription(db, user.id, plan.id, Decimal("50.00"))

    with pytest.raises(InvalidExtension):
        subscription_service.extend(db, sub, days, utcnow())


def test_extend_without_end_date_is_not_active(db, make_user, make_plan):
    user = make_user("student")
    plan = make_plan("student")
    sub = lifecycle_service.create_walk_in_subscription(db, user.id, plan.id, Decimal("50.00"))
    sub.end_date = None
    db.commit()

    with pytest.raises(SubscriptionNotActive):
        subscription_service.extend(db, sub, 10, utcnow())
    assert sub.end_date is None


def test_list_subscriptions_filters_by_effective_status(db, make_user, make_plan):
    student = make_user("student")
    staff = make_user("staff")
    student_plan = make_plan("student")
    staff_plan = make_plan("staff")

    active = lifecycle_service.create_walk_in_subscription(db, student.id, student_plan.id, Decimal("50.00"))
    lapsed = lifecycle_service.create_walk_in_subscription(db, student.id, student_plan.id, Decimal("50.00"))
    lapsed.end_date = utcnow() - timedelta(days=2)
    db.commit()
    pending, _ = lifecycle_service.open_pending_subscription(db, staff.id, staff_plan.id)

    now = utcnow()
    result = subscription_service.list_subscriptions(db, now, status="active")
    assert [s["id"] for s in result["subscriptions"]] == [active.id]

    result = subscription_service.list_subscriptions(db, now, status="expired")
    assert [s["id"] for s in result["subscriptions"]] == [lapsed.id]
    assert result["subscriptions"][0]["status"] == "active"
    assert result["subscriptions"][0]["effective_status"] == "expired"

    result = subscription_service.list_subscriptions(db, now, user_category="staff")
    assert [s["id"] for s in result["subscriptions"]] == [pending.id]
    assert result["subscriptions"][0]["user_category"] == "staff"
    assert result["subscriptions"][0]["plan_name"] == staff_plan.name

    result = subscription_service.list_subscriptions(db, now, plan_id=student_plan.id, page=1, limit=1)
    assert result["total"] == 2
    assert result["total_pages"] == 2
    assert len(result["subscriptions"]) == 1


def test_subscription_to_dict_formats_amounts(db, make_user, make_plan):
    user = make_user("student")
    plan = make_plan("student", price="50")
    sub = lifecycle_service.create_walk_in_subscription(db, user.id, plan.id, Decimal("50"))

    data = subscription_service.subscription_to_dict(sub, utcnow(), plan, user)
    assert data["amount_paid"] == "50.00"
    assert data["plan_price"] == "50.00"
    assert data["currency"] == "GHS"
    assert data["user_email"] == user.email
