"""期限切れ購読の確定 (active → expired)"""
from gymadmin.core.database import SessionLocal
from gymadmin.core.logging import get_logger
from gymadmin.services import lifecycle_service

logger = get_logger(__name__)


def expire_subscriptions():
    """終了日を過ぎた active 購読を expired に更新"""
    db = SessionLocal()
    try:
        count = lifecycle_service.expire_subscriptions(db)
        if count:
            logger.info(f"期限切れ購読を確定: {count}件")
    except Exception as e:
        logger.error(f"期限切れ確定エラー: {e}", exc_info=True)
    finally:
        db.close()
