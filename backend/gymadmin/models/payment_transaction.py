from sqlalchemy import (
    Column, Integer, String, Numeric, DateTime, JSON, Enum as SAEnum, ForeignKey, func,
)
from gymadmin.core.database import Base
from gymadmin.models.subscription import PAYMENT_STATUSES


class PaymentTransaction(Base):
    __tablename__ = "payment_transactions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    subscription_id = Column(
        Integer,
        ForeignKey("user_subscriptions.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    payment_reference = Column(String(64), nullable=False, unique=True, comment="システム採番の決済参照番号")
    gateway_reference = Column(String(255), nullable=True, unique=True, comment="決済代行側の参照番号")
    amount = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="GHS")
    status = Column(
        SAEnum(*PAYMENT_STATUSES, name="payment_transaction_status"),
        nullable=False,
        default="pending",
        index=True,
    )
    payment_method = Column(String(50), nullable=True, comment="cash / card / mobile_money / bank_transfer / gateway")
    gateway_response = Column(JSON, nullable=True, comment="決済応答・操作履歴 {events: [...]}")
    paid_at = Column(DateTime, nullable=True, comment="完了時のみ設定")
    created_at = Column(DateTime, nullable=False, server_default=func.now(), index=True)
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())
