import logging
import time
from datetime import datetime
from functools import lru_cache
from typing import Any, Dict

import razorpay

from app.config import settings
from app.exceptions import DependencyError, NotFoundError, ValidationError
from app.schemas.payment_schemas import GatewayOrderCreate, PaymentVerifyRequest

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_razorpay_client() -> razorpay.Client:
    if not settings.razorpay_key_id or not settings.razorpay_key_secret:
        raise DependencyError("Payment gateway is not configured")

    return razorpay.Client(
        auth=(settings.razorpay_key_id, settings.razorpay_key_secret)
    )


def _payment_summary(payment: Dict[str, Any]) -> dict:
    return {
        "paymentId": payment.get("id"),
        "orderId": payment.get("order_id"),
        "status": payment.get("status"),
        "amount": payment.get("amount", 0) / 100,  # paise -> rupees
        "currency": payment.get("currency"),
        "method": payment.get("method"),
        "captured": payment.get("captured"),
    }


def create_gateway_order(data: GatewayOrderCreate) -> dict:
    client = get_razorpay_client()

    try:
        order = client.order.create(
            {
                "amount": int(round(data.amount * 100)),  # Convert to paise
                "currency": data.currency,
                "receipt": data.receipt or f"receipt_{int(time.time() * 1000)}",
                "notes": data.notes,
            }
        )
    except razorpay.errors.BadRequestError as exc:
        raise ValidationError(str(exc))
    except (razorpay.errors.GatewayError, razorpay.errors.ServerError):
        logger.exception("Error creating Razorpay order")
        raise DependencyError("Error creating payment order")

    return {
        "orderId": order["id"],
        "amount": order["amount"],
        "currency": order["currency"],
        "receipt": order.get("receipt"),
        "key": settings.razorpay_key_id,
    }


def verify_payment(data: PaymentVerifyRequest) -> dict:
    client = get_razorpay_client()

    try:
        client.utility.verify_payment_signature({
            "razorpay_order_id": data.razorpay_order_id,
            "razorpay_payment_id": data.razorpay_payment_id,
            "razorpay_signature": data.razorpay_signature,
        })
    except razorpay.errors.SignatureVerificationError:
        logger.warning(f"Invalid signature for payment {data.razorpay_payment_id}")
        raise ValidationError("Payment verification failed: Invalid signature")

    try:
        payment = client.payment.fetch(data.razorpay_payment_id)
    except Exception:
        logger.exception(f"Error fetching payment {data.razorpay_payment_id} from Razorpay")
        raise DependencyError("Error verifying payment with Razorpay")

    summary = _payment_summary(payment)
    summary["paymentId"] = data.razorpay_payment_id
    summary["orderId"] = data.razorpay_order_id
    return summary


def get_payment_status(payment_id: str) -> dict:
    client = get_razorpay_client()

    try:
        payment = client.payment.fetch(payment_id)
    except razorpay.errors.BadRequestError:
        raise NotFoundError("Payment not found")
    except (razorpay.errors.GatewayError, razorpay.errors.ServerError):
        logger.exception(f"Error fetching payment status {payment_id}")
        raise DependencyError("Error fetching payment status")

    summary = _payment_summary(payment)
    created = payment.get("created_at")
    summary["createdAt"] = datetime.utcfromtimestamp(created).isoformat() if created else None
    return summary
