from fastapi import APIRouter, Depends, Request, status
from sqlmodel import Session

from app.database import get_session
from app.models.user import User
from app.schemas.orders_schemas import OrderCreate, OrderStatusUpdate
from app.services import order_service
from app.services.activity_logger import log_activity
from app.services.order_timeline_service import get_timeline
from app.services.order_tracking import get_order_stages, is_cancelled, is_order_picked_up
from app.utils.responses import success_response
from app.utils.token import get_current_user

router = APIRouter()


@router.get("")
def list_orders(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    orders = order_service.list_orders(session, current_user.id)
    return success_response(
        [order_service.load_order_details(session, o) for o in orders]
    )


@router.get("/{order_id}")
def get_order(
    order_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    order = order_service.get_order(session, order_id, current_user.id)
    return success_response(order_service.load_order_details(session, order))


# -------- tracking --------

@router.get("/{order_id}/tracking")
def track_order(
    order_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    order = order_service.get_order(session, order_id, current_user.id)
    timeline = get_timeline(session, order.id)

    return success_response({
        "orderId": order.id,
        "orderNumber": order.order_number,
        "status": order.status,
        "statusNote": order.status_note or "",
        "isCancelled": is_cancelled(order.status),
        "isPickedUp": is_order_picked_up(order.status, timeline),
        "otp": order.otp,
        "stages": [
            {
                "stage": s["stage"],
                "description": s["description"],
                "timestamp": order_service.format_time(s["timestamp"]),
                "isCompleted": s["is_completed"],
                "isCurrent": s["is_current"],
            }
            for s in get_order_stages(order.status, timeline)
        ],
    })


# -------- create / status --------

@router.post("", status_code=status.HTTP_201_CREATED)
def create_order(
    payload: OrderCreate,
    request: Request,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    order, coupon_error = order_service.create_order(session, current_user.id, payload)

    log_activity(
        session,
        current_user.id,
        "ORDER_PLACED",
        f"Order {order.order_number} placed",
        entity_type="order",
        entity_id=order.id,
        meta={"total": order.total, "itemCount": len(payload.items)},
        request=request,
    )

    response = success_response(order_service.load_order_details(session, order))
    if coupon_error:
        response["couponError"] = coupon_error
    return response


@router.patch("/{order_id}/status")
def update_order_status(
    order_id: int,
    payload: OrderStatusUpdate,
    request: Request,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    order = order_service.update_status(
        session, order_id, current_user.id, payload.status, payload.status_note
    )

    log_activity(
        session,
        current_user.id,
        "ORDER_STATUS_UPDATED",
        f"Order {order.order_number} marked {order.status}",
        entity_type="order",
        entity_id=order.id,
        request=request,
    )
    return success_response({
        "message": "Order status updated successfully",
        "order": order_service.load_order_details(session, order),
    })
