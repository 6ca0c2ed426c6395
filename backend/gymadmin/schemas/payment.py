from decimal import Decimal
from typing import Optional
from pydantic import Field

from gymadmin.schemas.subscription import CamelModel


class CompletePaymentRequest(CamelModel):
    amount_paid: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    payment_method: str = Field(min_length=1, max_length=50)  # cash / card / mobile_money / bank_transfer
    notes: Optional[str] = Field(default=None, max_length=500)
