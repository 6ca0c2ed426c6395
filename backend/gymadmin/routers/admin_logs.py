"""管理画面: 監査ログ"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional
from datetime import date, datetime

from gymadmin.core.database import get_db
from gymadmin.models.system_log import SystemLog
from gymadmin.routers.deps import require_admin
from gymadmin.schemas.common import envelope, iso, page_info

router = APIRouter(prefix="/api/admin/logs", tags=["admin-logs"])


@router.get("")
async def list_logs(
    level: Optional[str] = None,
    event_type: Optional[str] = Query(None, alias="eventType"),
    subscription_id: Optional[int] = Query(None, alias="subscriptionId"),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    _=Depends(require_admin),
):
    """ログ一覧"""
    q = db.query(SystemLog)
    if level:
        q = q.filter(SystemLog.level == level)
    if event_type:
        q = q.filter(SystemLog.event_type == event_type)
    if subscription_id:
        q = q.filter(SystemLog.subscription_id == subscription_id)
    if start_date:
        q = q.filter(SystemLog.created_at >= datetime.combine(start_date, datetime.min.time()))
    if end_date:
        q = q.filter(SystemLog.created_at <= datetime.combine(end_date, datetime.max.time()))

    total = q.count()
    logs = q.order_by(SystemLog.created_at.desc(), SystemLog.id.desc()).offset((page - 1) * limit).limit(limit).all()

    return envelope(
        {
            "logs": [
                {
                    "id": l.id,
                    "level": l.level,
                    "event_type": l.event_type,
                    "user_id": l.user_id,
                    "subscription_id": l.subscription_id,
                    "payment_id": l.payment_id,
                    "actor": l.actor,
                    "message": l.message,
                    "details": l.details,
                    "created_at": iso(l.created_at),
                }
                for l in logs
            ],
            **page_info(total, page, limit),
        },
        "ログ一覧を取得しました",
    )
