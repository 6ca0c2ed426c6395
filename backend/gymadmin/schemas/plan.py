from decimal import Decimal
from typing import Literal, Optional
from pydantic import Field

from gymadmin.schemas.subscription import CamelModel

UserCategory = Literal["student", "staff", "public"]
DurationType = Literal["walk-in", "monthly", "semester", "half-year", "yearly"]


class PlanCreate(CamelModel):
    name: str = Field(min_length=2, max_length=50)
    user_category: UserCategory
    duration_type: DurationType
    price_amount: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    duration_days: int = Field(gt=0)
    description: Optional[str] = Field(default=None, max_length=500)
    is_active: bool = True


class PlanUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=50)
    price_amount: Optional[Decimal] = Field(default=None, gt=0, max_digits=10, decimal_places=2)
    duration_days: Optional[int] = Field(default=None, gt=0)
    description: Optional[str] = Field(default=None, max_length=500)
    is_active: Optional[bool] = None
