from fastapi import APIRouter

from app.schemas.payment_schemas import GatewayOrderCreate, PaymentVerifyRequest
from app.services import payment_gateway
from app.utils.responses import success_response

router = APIRouter()


# -------- RAZORPAY --------

@router.post("/create-order")
def create_payment_order(payload: GatewayOrderCreate):
    return success_response(payment_gateway.create_gateway_order(payload))


@router.post("/verify")
def verify_payment(payload: PaymentVerifyRequest):
    result = payment_gateway.verify_payment(payload)
    result["verified"] = True
    return success_response(result)


@router.get("/status/{payment_id}")
def payment_status(payment_id: str):
    return success_response(payment_gateway.get_payment_status(payment_id))
