from sqlalchemy import (
    Column, Integer, String, Boolean, Numeric, DateTime, Enum as SAEnum, ForeignKey, func,
)
from gymadmin.core.database import Base

SUBSCRIPTION_STATUSES = ("pending", "active", "expired", "cancelled")
PAYMENT_STATUSES = ("pending", "completed", "failed", "cancelled")


class UserSubscription(Base):
    """会員の購読。物理削除はせず、解約もステータス遷移で表す"""

    __tablename__ = "user_subscriptions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True)
    plan_id = Column(Integer, ForeignKey("subscription_plans.id", ondelete="RESTRICT"), nullable=False, index=True)
    status = Column(
        SAEnum(*SUBSCRIPTION_STATUSES, name="subscription_status"),
        nullable=False,
        default="pending",
        index=True,
    )
    payment_status = Column(
        SAEnum(*PAYMENT_STATUSES, name="subscription_payment_status"),
        nullable=False,
        default="pending",
    )
    # 期間・金額は作成時点のプランからスナップショット (プラン編集の影響を受けない)
    start_date = Column(DateTime, nullable=True)
    end_date = Column(DateTime, nullable=True, index=True)
    payment_reference = Column(String(64), nullable=True, index=True, comment="購読開始時の決済参照番号")
    amount_paid = Column(Numeric(10, 2), nullable=True)
    currency = Column(String(3), nullable=False, default="GHS")
    auto_renew = Column(Boolean, nullable=False, default=False, comment="自動更新 (現状ライフサイクルでは未使用)")
    cancelled_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())
