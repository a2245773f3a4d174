from datetime import datetime
from typing import Optional

from pydantic import Field

from app.schemas.base import CamelModel


class CouponValidateRequest(CamelModel):
    code: str = Field(min_length=1)
    order_amount: float = Field(gt=0)


class CouponOut(CamelModel):
    id: int
    code: str
    discount_amount: float
    discount_percentage: Optional[float] = None
    min_order_amount: float
    max_discount: Optional[float] = None


class CouponValidation(CamelModel):
    valid: bool
    discount: float = 0
    error: Optional[str] = None
    coupon: Optional[CouponOut] = None


class CouponCreate(CamelModel):
    code: str
    discount_amount: float = 0
    discount_percentage: Optional[float] = Field(default=None, gt=0, le=100)
    min_order_amount: float = 0
    max_discount: Optional[float] = None
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    usage_limit: Optional[int] = Field(default=None, gt=0)
