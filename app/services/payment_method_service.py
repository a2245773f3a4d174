import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import update
from sqlmodel import Session, col, select

from app.exceptions import NotFoundError
from app.models.payment_method import PaymentMethod
from app.schemas.payment_schemas import PaymentMethodCreate, PaymentMethodOut

logger = logging.getLogger(__name__)


def _last4(number: Optional[str]) -> Optional[str]:
    if not number:
        return None
    digits = "".join(ch for ch in number if ch.isdigit())
    return digits[-4:] or None


def to_payment_method_out(method: PaymentMethod) -> PaymentMethodOut:
    return PaymentMethodOut.model_validate(method, from_attributes=True)


def list_payment_methods(session: Session, user_id: int) -> List[PaymentMethod]:
    return session.exec(
        select(PaymentMethod)
        .where(PaymentMethod.user_id == user_id, PaymentMethod.is_active == True)  # noqa: E712
        .order_by(PaymentMethod.is_default.desc(), PaymentMethod.created_at.desc())
    ).all()


def get_payment_method(session: Session, user_id: int, method_id: int) -> PaymentMethod:
    method = session.get(PaymentMethod, method_id)
    if not method or method.user_id != user_id or not method.is_active:
        raise NotFoundError("Payment method not found")
    return method


def _unset_defaults(session: Session, user_id: int):
    session.execute(
        update(PaymentMethod)
        .where(
            col(PaymentMethod.user_id) == user_id,
            col(PaymentMethod.is_default) == True,  # noqa: E712
        )
        .values(is_default=False, updated_at=datetime.utcnow())
        .execution_options(synchronize_session="fetch")
    )


def create_payment_method(session: Session, user_id: int, data: PaymentMethodCreate) -> PaymentMethod:
    # the first method a user adds becomes the default
    should_be_default = data.is_default or not list_payment_methods(session, user_id)

    if should_be_default:
        _unset_defaults(session, user_id)

    method = PaymentMethod(
        user_id=user_id,
        type=data.type,
        name=data.name,
        details=data.details,
        cardholder_name=data.cardholder_name,
        card_last4=_last4(data.card_number),
        card_expiry=data.card_expiry,
        account_holder_name=data.account_holder_name,
        account_last4=_last4(data.account_number),
        ifsc_code=data.ifsc_code,
        bank_name=data.bank_name,
        is_default=should_be_default,
    )
    session.add(method)
    session.commit()
    session.refresh(method)

    logger.info(f"Payment method {method.id} ({method.type}) added for user {user_id}")
    return method


def delete_payment_method(session: Session, user_id: int, method_id: int):
    """Soft delete; if it was the default another active method takes over."""
    method = get_payment_method(session, user_id, method_id)
    was_default = method.is_default

    method.is_active = False
    method.is_default = False
    method.updated_at = datetime.utcnow()
    session.add(method)
    session.flush()

    if was_default:
        replacement = session.exec(
            select(PaymentMethod)
            .where(PaymentMethod.user_id == user_id, PaymentMethod.is_active == True)  # noqa: E712
            .order_by(PaymentMethod.created_at.desc())
        ).first()
        if replacement:
            replacement.is_default = True
            replacement.updated_at = datetime.utcnow()
            session.add(replacement)

    session.commit()


def set_default_payment_method(session: Session, user_id: int, method_id: int) -> PaymentMethod:
    method = get_payment_method(session, user_id, method_id)

    _unset_defaults(session, user_id)
    method.is_default = True
    method.updated_at = datetime.utcnow()

    session.add(method)
    session.commit()
    session.refresh(method)
    return method
