from sqlmodel import SQLModel, Field
from typing import Optional


class OrderItem(SQLModel, table=True):
    __tablename__ = "order_item"

    id: Optional[int] = Field(default=None, primary_key=True)
    order_id: int = Field(foreign_key="orders.id", index=True)
    product_id: Optional[int] = Field(default=None, foreign_key="product.id")
    addon_id: Optional[int] = Field(default=None, foreign_key="addon.id")

    # snapshot at order time
    name: str
    quantity: int
    weight: Optional[str] = None
    weight_in_kg: Optional[float] = None
    price: float
    price_per_kg: Optional[float] = None
    image_url: Optional[str] = None
