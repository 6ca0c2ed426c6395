"""監査ログ記録 (呼び出し側のトランザクション内で追加のみ行う)"""
from typing import Optional
from sqlalchemy.orm import Session

from gymadmin.models.system_log import SystemLog


def record_event(
    db: Session,
    event_type: str,
    message: str,
    level: str = "INFO",
    user_id: Optional[int] = None,
    subscription_id: Optional[int] = None,
    payment_id: Optional[int] = None,
    actor: Optional[str] = None,
    details: Optional[dict] = None,
) -> SystemLog:
    """システムログ記録"""
    log = SystemLog(
        level=level,
        event_type=event_type,
        user_id=user_id,
        subscription_id=subscription_id,
        payment_id=payment_id,
        actor=actor,
        message=message,
        details=details,
    )
    db.add(log)
    return log
