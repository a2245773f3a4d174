from fastapi import APIRouter, Depends, Request, status
from sqlmodel import Session

from app.database import get_session
from app.models.user import User
from app.schemas.payment_schemas import PaymentMethodCreate
from app.services import payment_method_service
from app.services.activity_logger import log_activity
from app.utils.responses import message_response, success_response
from app.utils.token import get_current_user

router = APIRouter()


def _out(method) -> dict:
    return payment_method_service.to_payment_method_out(method).model_dump(by_alias=True)


@router.get("")
def list_payment_methods(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    methods = payment_method_service.list_payment_methods(session, current_user.id)
    return success_response([_out(m) for m in methods])


@router.post("", status_code=status.HTTP_201_CREATED)
def create_payment_method(
    payload: PaymentMethodCreate,
    request: Request,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    method = payment_method_service.create_payment_method(session, current_user.id, payload)

    log_activity(
        session,
        current_user.id,
        "PAYMENT_METHOD_ADDED",
        f"Payment method added: {method.name}",
        entity_type="payment_method",
        entity_id=method.id,
        meta={"type": method.type},
        request=request,
    )
    return success_response(_out(method))


@router.delete("/{method_id}")
def delete_payment_method(
    method_id: int,
    request: Request,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    payment_method_service.delete_payment_method(session, current_user.id, method_id)

    log_activity(
        session,
        current_user.id,
        "PAYMENT_METHOD_DELETED",
        "Payment method deleted",
        entity_type="payment_method",
        entity_id=method_id,
        request=request,
    )
    return message_response("Payment method deleted successfully")


@router.patch("/{method_id}/set-default")
def set_default_payment_method(
    method_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    method = payment_method_service.set_default_payment_method(session, current_user.id, method_id)
    return success_response(_out(method))
