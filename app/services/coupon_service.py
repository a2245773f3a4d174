import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import or_, update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, col, select

from app.exceptions import ConflictError, NotFoundError
from app.models.coupon import Coupon
from app.schemas.coupon_schemas import CouponCreate, CouponOut, CouponValidation

logger = logging.getLogger(__name__)


def _rejected(error: str) -> CouponValidation:
    return CouponValidation(valid=False, discount=0, error=error)


def compute_discount(coupon: Coupon, order_amount: float) -> float:
    if coupon.is_percentage:
        discount = order_amount * coupon.discount_percentage / 100
        if coupon.max_discount and discount > coupon.max_discount:
            discount = coupon.max_discount
        return round(discount, 2)

    # fixed coupons are not capped
    return coupon.discount_amount


def get_active_coupon(session: Session, code: str) -> Optional[Coupon]:
    return session.exec(
        select(Coupon).where(
            Coupon.code == code.strip().upper(),
            Coupon.is_active == True,  # noqa: E712
        )
    ).first()


def validate_coupon(
    session: Session,
    code: str,
    order_amount: float,
    now: Optional[datetime] = None,
) -> CouponValidation:
    now = now or datetime.utcnow()
    coupon = get_active_coupon(session, code)

    if not coupon:
        return _rejected("Invalid coupon code")

    if coupon.valid_until and coupon.valid_until < now:
        return _rejected("Coupon has expired")

    if coupon.valid_from and coupon.valid_from > now:
        return _rejected("Coupon is not active yet")

    if order_amount < coupon.min_order_amount:
        return _rejected(f"Minimum order amount of ₹{coupon.min_order_amount:g} required")

    if coupon.usage_limit and coupon.usage_count >= coupon.usage_limit:
        return _rejected("Coupon usage limit reached")

    return CouponValidation(
        valid=True,
        discount=compute_discount(coupon, order_amount),
        coupon=CouponOut.model_validate(coupon, from_attributes=True),
    )


def validate_coupon_by_id(
    session: Session,
    coupon_id: int,
    order_amount: float,
    now: Optional[datetime] = None,
) -> CouponValidation:
    coupon = session.get(Coupon, coupon_id)
    if not coupon or not coupon.is_active:
        return _rejected("Invalid coupon code")
    return validate_coupon(session, coupon.code, order_amount, now=now)


def apply_coupon(session: Session, coupon_id: int, commit: bool = True) -> bool:
    """
    Increment usage_count in a single conditional UPDATE.

    The row is only touched while usage_count < usage_limit, so two
    concurrent redemptions of the last use cannot both succeed.
    Returns False when the coupon is missing or exhausted.
    """
    result = session.execute(
        update(Coupon)
        .where(
            col(Coupon.id) == coupon_id,
            col(Coupon.is_active) == True,  # noqa: E712
            or_(
                col(Coupon.usage_limit).is_(None),
                col(Coupon.usage_count) < col(Coupon.usage_limit),
            ),
        )
        .values(usage_count=col(Coupon.usage_count) + 1)
        .execution_options(synchronize_session="fetch")
    )

    applied = result.rowcount == 1
    if commit:
        session.commit()

    if applied:
        logger.info(f"Coupon {coupon_id} applied")
    else:
        logger.warning(f"Coupon {coupon_id} could not be applied")
    return applied


def create_coupon(session: Session, data: CouponCreate) -> Coupon:
    code = data.code.strip().upper()
    if session.exec(select(Coupon).where(Coupon.code == code)).first():
        raise ConflictError(f"Coupon code {code} already exists")

    coupon = Coupon(**data.model_dump(exclude={"code"}), code=code)
    session.add(coupon)
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        raise ConflictError(f"Coupon code {code} already exists")

    session.refresh(coupon)
    return coupon


def get_coupon(session: Session, coupon_id: int) -> Coupon:
    coupon = session.get(Coupon, coupon_id)
    if not coupon:
        raise NotFoundError("Coupon not found")
    return coupon
