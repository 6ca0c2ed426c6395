from sqlalchemy import Column, Integer, String, Text, DateTime, JSON, ForeignKey, func
from gymadmin.core.database import Base


class SystemLog(Base):
    """監査ログ。ライフサイクル操作と同一トランザクションで記録する"""

    __tablename__ = "system_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    level = Column(String(20), nullable=False, index=True, comment="INFO/WARNING/ERROR/CRITICAL")
    event_type = Column(String(100), nullable=False, index=True, comment="イベント種別")
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    subscription_id = Column(
        Integer, ForeignKey("user_subscriptions.id", ondelete="SET NULL"), nullable=True, index=True
    )
    payment_id = Column(
        Integer, ForeignKey("payment_transactions.id", ondelete="SET NULL"), nullable=True, index=True
    )
    actor = Column(String(255), nullable=True, comment="操作した管理者 (email)")
    message = Column(Text, nullable=False)
    details = Column(JSON, nullable=True, comment="詳細データ")
    created_at = Column(DateTime, nullable=False, server_default=func.now(), index=True)
