"""
Order CRUD: checkout, lookup scoped to the owning user, status updates.
"""
import logging
import secrets
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from app.config import settings
from app.constants.order_status import (
    INITIAL_STATUS,
    ORDER_PLACED,
    ORDER_STAGES,
    STATUS_DESCRIPTIONS,
    STATUS_TIMELINE_STAGE,
    TERMINAL_STATUSES,
    VALID_STATUSES,
    OrderStatus,
)
from app.exceptions import ConflictError, DependencyError, NotFoundError, ValidationError
from app.models.address import Address
from app.models.order import Order
from app.models.order_item import OrderItem
from app.models.order_timeline import OrderTimelineEvent
from app.models.product import Product
from app.models.shop import Shop
from app.models.user import User
from app.schemas.orders_schemas import OrderCreate, OrderItemCreate
from app.services.coupon_service import apply_coupon, validate_coupon_by_id
from app.services.order_timeline_service import append_timeline_event, get_timeline
from app.services.order_tracking import get_order_stages, is_cancelled, is_order_picked_up

logger = logging.getLogger(__name__)

ORDER_NUMBER_PREFIX = "#TAZ"


# -------- helpers --------

def generate_otp() -> str:
    return str(100000 + secrets.randbelow(900000))


def next_order_number(session: Session) -> str:
    # follows the highest id, so deleted rows cannot make two live numbers collide
    last_id = session.exec(select(func.max(Order.id))).one()
    return f"{ORDER_NUMBER_PREFIX}{(last_id or 0) + settings.order_number_offset}"


def count_user_orders(session: Session, user_id: int) -> int:
    return session.exec(
        select(func.count()).select_from(Order).where(Order.user_id == user_id)
    ).one()


def validate_items(items: List[OrderItemCreate]):
    if not items:
        raise ValidationError("Missing required field: items")

    for index, item in enumerate(items, start=1):
        if item.quantity is None or item.quantity <= 0:
            raise ValidationError(f"Item {index} must have a positive quantity")
        if item.price is None or item.price <= 0:
            raise ValidationError(f"Item {index} must have a positive price")


def resolve_address(session: Session, user_id: int, address_id: Optional[int]) -> Address:
    if address_id is None:
        address = session.exec(
            select(Address)
            .where(Address.user_id == user_id)
            .order_by(Address.is_default.desc(), Address.created_at.desc())
        ).first()
        if not address:
            raise ValidationError("No delivery address found. Please add a delivery address.")
        return address

    address = session.get(Address, address_id)
    if not address or address.user_id != user_id:
        raise NotFoundError("Address not found")
    return address


def compute_total(subtotal: float, delivery_charge: float, discount: float) -> float:
    return round(subtotal + delivery_charge - discount, 2)


# -------- create --------

def create_order(
    session: Session,
    user_id: int,
    data: OrderCreate,
) -> Tuple[Order, Optional[str]]:
    """
    Place an order. Returns the order and, when a coupon was sent but could
    not be redeemed, the coupon error (the order is still placed, without
    the discount).

    Order, items, the initial timeline event and the coupon redemption are
    written in one transaction.
    """
    if not session.get(User, user_id):
        raise NotFoundError("User not found")

    validate_items(data.items)

    if data.subtotal is None or data.subtotal < 0:
        raise ValidationError("Subtotal must not be negative")

    if data.discount is not None and data.discount < 0:
        raise ValidationError("Discount must not be negative")

    address = resolve_address(session, user_id, data.address_id)

    if data.shop_id is not None and not session.get(Shop, data.shop_id):
        raise NotFoundError("Shop not found")

    delivery_charge = (
        data.delivery_charge
        if data.delivery_charge is not None
        else settings.default_delivery_charge
    )
    if delivery_charge < 0:
        raise ValidationError("Delivery charge must not be negative")

    # first few orders ship free
    if count_user_orders(session, user_id) < settings.free_delivery_order_count:
        delivery_charge = 0

    discount = data.discount or 0
    coupon_id = None
    coupon_error = None

    if data.coupon_id is not None:
        validation = validate_coupon_by_id(session, data.coupon_id, data.subtotal)
        if validation.valid:
            coupon_id = data.coupon_id
            # a flat coupon may be worth more than the order; the total floors at 0
            discount = min(validation.discount, round(data.subtotal + delivery_charge, 2))
        else:
            coupon_error = validation.error
            discount = 0
            logger.warning(
                f"Coupon {data.coupon_id} rejected for user {user_id}: {coupon_error}"
            )

    if compute_total(data.subtotal, delivery_charge, discount) < 0:
        raise ValidationError("Discount cannot exceed the order amount")

    now = datetime.utcnow()

    try:
        if coupon_id is not None and not apply_coupon(session, coupon_id, commit=False):
            coupon_error = "Coupon usage limit reached"
            coupon_id = None
            discount = 0

        total = compute_total(data.subtotal, delivery_charge, discount)

        order = Order(
            user_id=user_id,
            shop_id=data.shop_id,
            address_id=address.id,
            order_number=next_order_number(session),
            subtotal=data.subtotal,
            delivery_charge=delivery_charge,
            discount=discount,
            total=total,
            coupon_id=coupon_id,
            status=INITIAL_STATUS,
            status_note=STATUS_DESCRIPTIONS[INITIAL_STATUS],
            payment_method_id=data.payment_method_id,
            payment_method_text=data.payment_method_text or "Cash on Delivery",
            special_instructions=data.special_instructions,
            otp=generate_otp(),
            created_at=now,
            updated_at=now,
        )
        session.add(order)
        session.flush()

        for item in data.items:
            session.add(
                OrderItem(
                    order_id=order.id,
                    product_id=item.product_id,
                    addon_id=item.addon_id,
                    name=item.name or "Unknown Product",
                    quantity=item.quantity,
                    weight=item.weight,
                    weight_in_kg=item.weight_in_kg,
                    price=item.price,
                    price_per_kg=item.price_per_kg,
                    image_url=item.image_url,
                )
            )

        append_timeline_event(
            session,
            order_id=order.id,
            stage=ORDER_PLACED,
            description=ORDER_STAGES[0]["description"],
            is_completed=True,
            timestamp=now,
        )

        session.commit()
    except SQLAlchemyError:
        session.rollback()
        logger.exception(f"Failed to create order for user {user_id}")
        raise DependencyError("Failed to create order")

    session.refresh(order)
    logger.info(
        f"Order {order.order_number} created for user {user_id}: "
        f"{len(data.items)} items, total {order.total}"
    )
    return order, coupon_error


# -------- read --------

def get_order(session: Session, order_id: int, user_id: int) -> Order:
    """Orders of other users are reported as missing, not forbidden."""
    order = session.exec(
        select(Order).where(Order.id == order_id, Order.user_id == user_id)
    ).first()
    if not order:
        raise NotFoundError("Order not found")
    return order


def list_orders(session: Session, user_id: int) -> List[Order]:
    return session.exec(
        select(Order)
        .where(Order.user_id == user_id)
        .order_by(Order.created_at.desc(), Order.id.desc())
    ).all()


def get_order_items(session: Session, order_id: int) -> List[OrderItem]:
    return session.exec(
        select(OrderItem).where(OrderItem.order_id == order_id).order_by(OrderItem.id)
    ).all()


# -------- status --------

def update_status(
    session: Session,
    order_id: int,
    user_id: int,
    status: str,
    note: Optional[str] = None,
) -> Order:
    if not status:
        raise ValidationError("Status is required")
    if status not in VALID_STATUSES:
        raise ValidationError("Invalid status")

    order = get_order(session, order_id, user_id)

    if order.status in TERMINAL_STATUSES:
        raise ConflictError(f"Order is already {order.status}")

    previous = order.status
    now = datetime.utcnow()

    order.status = status
    order.status_note = note or None
    order.updated_at = now
    if status == OrderStatus.delivered.value:
        order.delivered_at = now

    session.add(order)
    append_timeline_event(
        session,
        order_id=order.id,
        stage=STATUS_TIMELINE_STAGE[status],
        description=note or STATUS_DESCRIPTIONS.get(status, ""),
        is_completed=status != OrderStatus.cancelled.value,
        timestamp=now,
    )

    try:
        session.commit()
    except SQLAlchemyError:
        session.rollback()
        logger.exception(f"Failed to update status of order {order_id}")
        raise DependencyError("Failed to update order status")

    session.refresh(order)
    logger.info(f"Order {order.order_number} status {previous} -> {status}")
    return order


# -------- formatting --------

def format_date(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return f"{value:%a}, {value.day} {value:%b} {value.year} • {format_time(value)}"


def format_time(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return value.strftime("%I:%M %p").lstrip("0")


def _format_item(item: OrderItem, image_url: Optional[str]) -> dict:
    return {
        "name": item.name,
        "quantity": item.quantity,
        "weight": item.weight or "",
        "weightInKg": item.weight_in_kg,
        "price": item.price,
        "pricePerKg": item.price_per_kg,
        "lineTotal": round(item.price * item.quantity, 2),
        "image": image_url or "",
        "productId": item.product_id,
        "addonId": item.addon_id,
    }


def _format_address(address: Optional[Address]) -> Optional[dict]:
    if address is None:
        return None
    return {
        "id": address.id,
        "contactName": address.contact_name,
        "phone": address.phone,
        "street": address.street,
        "city": address.city,
        "state": address.state,
        "postalCode": address.postal_code,
        "landmark": address.landmark,
        "label": address.label,
    }


def format_order(
    order: Order,
    items: List[OrderItem],
    timeline: List[OrderTimelineEvent],
    shop: Optional[Shop] = None,
    address: Optional[Address] = None,
    product_images: Optional[dict] = None,
) -> dict:
    product_images = product_images or {}

    return {
        "id": order.id,
        "orderNumber": order.order_number,
        "placedOn": format_date(order.created_at),
        "createdAt": order.created_at,
        "subtotal": order.subtotal,
        "deliveryCharge": order.delivery_charge,
        "discount": order.discount,
        "total": order.total,
        "couponId": order.coupon_id,
        "status": order.status,
        "statusNote": order.status_note or "",
        "isCancelled": is_cancelled(order.status),
        "isPickedUp": is_order_picked_up(order.status, timeline),
        "shopName": shop.name if shop else "",
        "shopAddress": (shop.address or "") if shop else "",
        "shopContact": (shop.contact_phone or "") if shop else "",
        "shopImage": (shop.image_url or "") if shop else "",
        "address": _format_address(address),
        "paymentMethod": order.payment_method_text or "",
        "specialInstructions": order.special_instructions or "",
        "deliveryEta": format_date(order.delivery_eta),
        "otp": order.otp,
        "deliveredAt": order.delivered_at,
        "deliveryAgent": (
            {
                "name": order.delivery_agent_name,
                "mobile": order.delivery_agent_mobile or "",
            }
            if order.delivery_agent_name
            else None
        ),
        "items": [
            _format_item(i, i.image_url or product_images.get(i.product_id))
            for i in items
        ],
        "timeline": [
            {
                "stage": e.stage,
                "description": e.description,
                "timestamp": format_time(e.timestamp),
                "isCompleted": e.is_completed,
            }
            for e in timeline
        ],
        "stages": [
            {
                "stage": s["stage"],
                "description": s["description"],
                "timestamp": format_time(s["timestamp"]),
                "isCompleted": s["is_completed"],
                "isCurrent": s["is_current"],
            }
            for s in get_order_stages(order.status, timeline)
        ],
    }


def load_order_details(session: Session, order: Order) -> dict:
    items = get_order_items(session, order.id)
    timeline = get_timeline(session, order.id)
    shop = session.get(Shop, order.shop_id) if order.shop_id else None
    address = session.get(Address, order.address_id) if order.address_id else None

    # fall back to the catalogue image for items saved without one
    missing = {i.product_id for i in items if not i.image_url and i.product_id}
    product_images = {}
    if missing:
        products = session.exec(select(Product).where(Product.id.in_(missing))).all()
        product_images = {p.id: p.image_url for p in products if p.image_url}

    return format_order(order, items, timeline, shop, address, product_images)
