from typing import Dict, Literal, Optional

from pydantic import Field

from app.schemas.base import CamelModel


class PaymentMethodCreate(CamelModel):
    type: Literal["card", "bank"]
    name: str = Field(min_length=1)
    details: str = Field(min_length=1)

    card_number: Optional[str] = None
    card_expiry: Optional[str] = None
    cardholder_name: Optional[str] = None

    account_number: Optional[str] = None
    ifsc_code: Optional[str] = None
    account_holder_name: Optional[str] = None
    bank_name: Optional[str] = None

    is_default: bool = False


class PaymentMethodOut(CamelModel):
    id: int
    type: str
    name: str
    details: str
    is_default: bool


# -------- gateway --------

class GatewayOrderCreate(CamelModel):
    amount: float = Field(gt=0)
    currency: str = "INR"
    receipt: Optional[str] = None
    notes: Dict[str, str] = {}


# the checkout widget posts these keys in snake_case, which populate_by_name accepts
class PaymentVerifyRequest(CamelModel):
    razorpay_order_id: str
    razorpay_payment_id: str
    razorpay_signature: str
