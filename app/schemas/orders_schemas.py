from typing import List, Optional

from app.schemas.base import CamelModel


class OrderItemCreate(CamelModel):
    product_id: Optional[int] = None
    addon_id: Optional[int] = None
    name: Optional[str] = None
    quantity: int = 1
    weight: Optional[str] = None
    weight_in_kg: Optional[float] = None
    price: float
    price_per_kg: Optional[float] = None
    image_url: Optional[str] = None


class OrderCreate(CamelModel):
    shop_id: Optional[int] = None
    address_id: Optional[int] = None
    items: List[OrderItemCreate]
    subtotal: float
    delivery_charge: Optional[float] = None
    discount: float = 0
    coupon_id: Optional[int] = None
    payment_method_id: Optional[int] = None
    payment_method_text: Optional[str] = None
    special_instructions: Optional[str] = None


class OrderStatusUpdate(CamelModel):
    status: str
    status_note: Optional[str] = None
