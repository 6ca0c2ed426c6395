"""管理画面: プランカタログ管理"""
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from gymadmin.core.database import get_db, transaction
from gymadmin.core.logging import get_logger
from gymadmin.core.rate_limit import limiter, ADMIN_WRITE_RATE_LIMIT
from gymadmin.routers.deps import require_admin
from gymadmin.schemas.common import envelope
from gymadmin.schemas.plan import PlanCreate, PlanUpdate
from gymadmin.services import audit_service, plan_service

logger = get_logger(__name__)

router = APIRouter(prefix="/api/admin/subscription-plans", tags=["admin-plans"])


@router.get("")
async def list_plans(
    active_only: bool = Query(False, alias="activeOnly"),
    db: Session = Depends(get_db),
    _=Depends(require_admin),
):
    """プラン一覧"""
    plans = plan_service.list_plans(db, active_only=active_only)
    return envelope([plan_service.plan_to_dict(p) for p in plans], "プラン一覧を取得しました")


@router.get("/{plan_id}")
async def get_plan(
    plan_id: int,
    db: Session = Depends(get_db),
    _=Depends(require_admin),
):
    plan = plan_service.get_plan(db, plan_id)
    return envelope(plan_service.plan_to_dict(plan), "プランを取得しました")


@router.post("", status_code=201)
@limiter.limit(ADMIN_WRITE_RATE_LIMIT)
async def create_plan(
    request: Request,
    data: PlanCreate,
    db: Session = Depends(get_db),
    admin: dict = Depends(require_admin),
):
    """プラン作成"""
    with transaction(db):
        plan = plan_service.create_plan(db, **data.model_dump())
        audit_service.record_event(
            db,
            "plan_created",
            f"プラン作成: {plan.name}",
            actor=admin.get("email"),
            details={"plan_id": plan.id, "price_amount": str(plan.price_amount)},
        )
    logger.info(f"プラン作成: plan_id={plan.id}, {plan.user_category}/{plan.duration_type}")
    return envelope(plan_service.plan_to_dict(plan), "プランを作成しました")


@router.put("/{plan_id}")
@limiter.limit(ADMIN_WRITE_RATE_LIMIT)
async def update_plan(
    request: Request,
    plan_id: int,
    data: PlanUpdate,
    db: Session = Depends(get_db),
    admin: dict = Depends(require_admin),
):
    """プラン更新 (既存購読には影響しない)"""
    changes = data.model_dump(exclude_unset=True)
    with transaction(db):
        plan = plan_service.update_plan(db, plan_id, changes)
        audit_service.record_event(
            db,
            "plan_updated",
            f"プラン更新: {plan.name}",
            actor=admin.get("email"),
            details={"plan_id": plan.id, "fields": sorted(changes.keys())},
        )
    logger.info(f"プラン更新: plan_id={plan_id}, fields={sorted(changes.keys())}")
    return envelope(plan_service.plan_to_dict(plan), "プランを更新しました")


@router.patch("/{plan_id}/toggle-active")
@limiter.limit(ADMIN_WRITE_RATE_LIMIT)
async def toggle_plan_active(
    request: Request,
    plan_id: int,
    db: Session = Depends(get_db),
    admin: dict = Depends(require_admin),
):
    """販売開始/停止の切り替え"""
    with transaction(db):
        current = plan_service.get_plan(db, plan_id)
        plan = plan_service.set_plan_active(db, plan_id, not current.is_active)
        audit_service.record_event(
            db,
            "plan_activated" if plan.is_active else "plan_deactivated",
            f"プラン{'販売開始' if plan.is_active else '販売停止'}: {plan.name}",
            actor=admin.get("email"),
            details={"plan_id": plan.id},
        )
    state = "販売中" if plan.is_active else "販売停止"
    return envelope(plan_service.plan_to_dict(plan), f"プランを{state}にしました")
