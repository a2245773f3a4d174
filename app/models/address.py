from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime

class Address(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    contact_name: str
    phone: str
    street: str
    city: str
    state: str
    postal_code: str
    landmark: Optional[str] = None
    label: str = Field(default="Home")
    is_default: bool = Field(default=False)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
