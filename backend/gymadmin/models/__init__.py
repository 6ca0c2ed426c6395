# 全モデルをインポート (Alembic autogenerate用)
from gymadmin.models.user import User
from gymadmin.models.plan import SubscriptionPlan
from gymadmin.models.subscription import UserSubscription
from gymadmin.models.payment_transaction import PaymentTransaction
from gymadmin.models.system_log import SystemLog

__all__ = [
    "User",
    "SubscriptionPlan",
    "UserSubscription",
    "PaymentTransaction",
    "SystemLog",
]
