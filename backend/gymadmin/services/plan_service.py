"""プランカタログ"""
from decimal import Decimal
from typing import Optional
from sqlalchemy.orm import Session

from gymadmin.models.plan import SubscriptionPlan
from gymadmin.schemas.common import iso, money
from gymadmin.services.errors import PlanNotFound, PlanInactive, DuplicatePlan

# 画面表示用の期間順
DURATION_ORDER = {"walk-in": 1, "monthly": 2, "semester": 3, "half-year": 4, "yearly": 5}

UPDATABLE_FIELDS = ("name", "price_amount", "duration_days", "description", "is_active")


def list_plans(db: Session, active_only: bool = False) -> list[SubscriptionPlan]:
    """プラン一覧 (会員区分 → 期間順)"""
    q = db.query(SubscriptionPlan)
    if active_only:
        q = q.filter(SubscriptionPlan.is_active == True)
    plans = q.all()
    return sorted(plans, key=lambda p: (p.user_category, DURATION_ORDER.get(p.duration_type, 99)))


def get_plan(db: Session, plan_id: int) -> SubscriptionPlan:
    plan = db.query(SubscriptionPlan).filter(SubscriptionPlan.id == plan_id).first()
    if not plan:
        raise PlanNotFound()
    return plan


def get_active_plan(db: Session, plan_id: int) -> SubscriptionPlan:
    """販売中のプランを取得。存在しなければPlanNotFound、停止中ならPlanInactive"""
    plan = get_plan(db, plan_id)
    if not plan.is_active:
        raise PlanInactive()
    return plan


def create_plan(
    db: Session,
    name: str,
    user_category: str,
    duration_type: str,
    price_amount: Decimal,
    duration_days: int,
    description: Optional[str] = None,
    is_active: bool = True,
) -> SubscriptionPlan:
    """プラン作成 (会員区分×期間種別で一意)"""
    existing = db.query(SubscriptionPlan).filter(
        SubscriptionPlan.user_category == user_category,
        SubscriptionPlan.duration_type == duration_type,
    ).first()
    if existing:
        raise DuplicatePlan(f"{user_category}向けの{duration_type}プランは既に存在します")

    plan = SubscriptionPlan(
        name=name,
        user_category=user_category,
        duration_type=duration_type,
        price_amount=price_amount,
        duration_days=duration_days,
        description=description,
        is_active=is_active,
    )
    db.add(plan)
    db.flush()
    return plan


def update_plan(db: Session, plan_id: int, changes: dict) -> SubscriptionPlan:
    """プランをその場で更新する。

    既存購読は金額・終了日を作成時にスナップショットしているため、
    価格や日数を変更しても過去の購読には影響しない。
    """
    plan = get_plan(db, plan_id)
    for field in UPDATABLE_FIELDS:
        if field not in changes:
            continue
        # description 以外は NOT NULL
        if changes[field] is None and field != "description":
            continue
        setattr(plan, field, changes[field])
    db.flush()
    return plan


def set_plan_active(db: Session, plan_id: int, is_active: bool) -> SubscriptionPlan:
    """販売開始/停止 (プランは削除しない)"""
    plan = get_plan(db, plan_id)
    plan.is_active = is_active
    db.flush()
    return plan


def plan_to_dict(plan: SubscriptionPlan) -> dict:
    return {
        "id": plan.id,
        "name": plan.name,
        "user_category": plan.user_category,
        "duration_type": plan.duration_type,
        "price_amount": money(plan.price_amount),
        "duration_days": plan.duration_days,
        "description": plan.description,
        "is_active": plan.is_active,
        "created_at": iso(plan.created_at),
        "updated_at": iso(plan.updated_at),
    }
