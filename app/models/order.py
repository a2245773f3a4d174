from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime

from app.constants.order_status import INITIAL_STATUS


class Order(SQLModel, table=True):
    __tablename__ = "orders"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    shop_id: Optional[int] = Field(default=None, foreign_key="shop.id")
    address_id: int = Field(foreign_key="address.id")
    order_number: str = Field(unique=True, index=True)

    subtotal: float
    delivery_charge: float
    discount: float = 0
    total: float
    coupon_id: Optional[int] = Field(default=None, foreign_key="coupon.id")

    status: str = Field(default=INITIAL_STATUS)
    status_note: Optional[str] = None

    payment_method_id: Optional[int] = None
    payment_method_text: str = Field(default="Cash on Delivery")
    special_instructions: Optional[str] = None

    # delivery handover
    otp: str
    delivery_eta: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    delivery_agent_name: Optional[str] = None
    delivery_agent_mobile: Optional[str] = None

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
