from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime


class Coupon(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    code: str = Field(unique=True, index=True)

    # percentage coupons set discount_percentage, fixed ones discount_amount
    discount_amount: float = Field(default=0)
    discount_percentage: Optional[float] = None
    min_order_amount: float = Field(default=0)
    max_discount: Optional[float] = None

    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None

    usage_limit: Optional[int] = None
    usage_count: int = Field(default=0)
    is_active: bool = Field(default=True)

    created_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def is_percentage(self) -> bool:
        return bool(self.discount_percentage)
