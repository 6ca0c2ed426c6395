from sqlalchemy import (
    Column, Integer, String, Boolean, Text, Numeric, DateTime, Enum as SAEnum, UniqueConstraint, func,
)
from gymadmin.core.database import Base
from gymadmin.models.user import USER_CATEGORIES

DURATION_TYPES = ("walk-in", "monthly", "semester", "half-year", "yearly")


class SubscriptionPlan(Base):
    """会費プラン。削除はせず is_active=False で販売停止する"""

    __tablename__ = "subscription_plans"
    __table_args__ = (
        UniqueConstraint("user_category", "duration_type", name="uq_plan_category_duration"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(50), nullable=False, comment="プラン名")
    user_category = Column(
        SAEnum(*USER_CATEGORIES, name="plan_user_category"),
        nullable=False,
        index=True,
        comment="対象会員区分",
    )
    duration_type = Column(
        SAEnum(*DURATION_TYPES, name="plan_duration_type"),
        nullable=False,
        comment="期間種別",
    )
    price_amount = Column(Numeric(10, 2), nullable=False, comment="料金 (通貨の補助単位まで)")
    duration_days = Column(Integer, nullable=False, comment="有効日数")
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())
