from fastapi import APIRouter, Depends
from sqlmodel import Session

from app.database import get_session
from app.exceptions import CouponError
from app.models.user import User
from app.schemas.coupon_schemas import CouponValidateRequest
from app.services import coupon_service
from app.utils.responses import message_response
from app.utils.token import get_current_user

router = APIRouter()


@router.post("/validate")
def validate_coupon(payload: CouponValidateRequest, session: Session = Depends(get_session)):
    result = coupon_service.validate_coupon(session, payload.code, payload.order_amount)

    # a rejected code is a normal answer, not an HTTP error
    return {
        "success": result.valid,
        "data": result.model_dump(by_alias=True, exclude_none=True),
    }


@router.post("/{coupon_id}/apply")
def apply_coupon(
    coupon_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    coupon_service.get_coupon(session, coupon_id)

    if not coupon_service.apply_coupon(session, coupon_id):
        raise CouponError("Coupon usage limit reached")

    return message_response("Coupon applied successfully")
