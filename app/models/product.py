from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime


class Product(SQLModel, table=True):
    #main info
    id: Optional[int] = Field(default=None, primary_key=True)
    shop_id: Optional[int] = Field(default=None, foreign_key="shop.id", index=True)
    name: str
    category: str = Field(index=True)
    description: Optional[str] = None
    image_url: Optional[str] = None

    #weight and pricing
    weight: Optional[str] = None
    weight_in_kg: Optional[float] = None
    price: float
    price_per_kg: Optional[float] = None
    original_price: Optional[float] = None
    discount_percentage: Optional[float] = None

    is_available: bool = Field(default=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)


class Addon(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    price: float
    is_available: bool = Field(default=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
