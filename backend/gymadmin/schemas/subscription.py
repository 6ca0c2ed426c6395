from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from gymadmin.core.config import settings


class CamelModel(BaseModel):
    """管理画面はcamelCaseで送信する (snake_caseも受け付ける)"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class WalkInSubscriptionRequest(CamelModel):
    user_id: int = Field(gt=0)
    plan_id: int = Field(gt=0)
    amount_paid: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    payment_method: str = Field(default="cash", min_length=1, max_length=50)


class PendingSubscriptionRequest(CamelModel):
    user_id: int = Field(gt=0)
    plan_id: int = Field(gt=0)
    auto_renew: bool = False


class CancelSubscriptionRequest(CamelModel):
    reason: Optional[str] = Field(default=None, max_length=500)


class ExtendSubscriptionRequest(CamelModel):
    # true/"10" などの暗黙変換は受け付けない
    days: int = Field(ge=1, le=settings.MAX_EXTENSION_DAYS, strict=True)
