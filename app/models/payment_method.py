from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime


class PaymentMethod(SQLModel, table=True):
    __tablename__ = "payment_method"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)

    type: str  # card | bank
    name: str
    details: str

    # card: only the last digits are kept
    cardholder_name: Optional[str] = None
    card_last4: Optional[str] = None
    card_expiry: Optional[str] = None

    # bank
    account_holder_name: Optional[str] = None
    account_last4: Optional[str] = None
    ifsc_code: Optional[str] = None
    bank_name: Optional[str] = None

    is_default: bool = Field(default=False)
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
