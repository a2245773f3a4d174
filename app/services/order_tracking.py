# app/services/order_tracking.py
"""
Order lifecycle engine.

Turns an order's raw status plus its timeline events into the fixed
four-stage tracking view: Order Placed -> Order Ready -> Out for Delivery
-> Delivered. Pure functions, no database access.
"""

from typing import List, Optional, Sequence, Tuple

from app.constants.order_status import (
    ORDER_PLACED,
    ORDER_STAGES,
    STATUS_TO_STAGE,
    OrderStatus,
)

STAGE_NAMES = [s["stage"] for s in ORDER_STAGES]


def resolve_stage(status: Optional[str]) -> Tuple[Optional[str], int]:
    """Map a raw order status to (effective stage, position in ORDER_STAGES).

    Unmapped statuses such as ``Cancelled`` give ``(None, -1)``.
    """
    effective = STATUS_TO_STAGE.get(status, status)
    if effective in STAGE_NAMES:
        return effective, STAGE_NAMES.index(effective)
    return None, -1


def _find_event(timeline: Sequence, stage: str):
    for event in timeline or []:
        if event.stage == stage:
            return event
    return None


def is_current_stage(stage: str, status: str) -> bool:
    effective, _ = resolve_stage(status)
    return effective is not None and stage == effective


def is_stage_completed(stage: str, status: str, timeline: Sequence = ()) -> bool:
    if stage == ORDER_PLACED:
        return True

    if timeline:
        event = _find_event(timeline, stage)
        if event is not None:
            return bool(event.is_completed)

    _, current_index = resolve_stage(status)
    if stage not in STAGE_NAMES:
        return False
    return STAGE_NAMES.index(stage) < current_index


def is_cancelled(status: str) -> bool:
    return status == OrderStatus.cancelled.value


def is_order_picked_up(status: str, timeline: Sequence = ()) -> bool:
    """True once the order is with the delivery agent."""
    if status in (OrderStatus.out_for_delivery.value, OrderStatus.delivered.value):
        return True

    return any(
        event.stage == OrderStatus.out_for_delivery.value and event.is_completed
        for event in timeline or []
    )


def get_order_stages(status: str, timeline: Sequence = ()) -> List[dict]:
    """Stages to display for an order, in canonical order.

    With timeline events every stage after "Order Placed" is emitted and its
    completion comes from the matching event. Without events only the stages
    up to and including the current one are emitted, completion inferred
    from position.
    """
    placed = ORDER_STAGES[0]
    placed_event = _find_event(timeline, ORDER_PLACED)
    effective, current_index = resolve_stage(status)

    stages = [{
        "stage": placed["stage"],
        "description": placed["description"],
        "timestamp": placed_event.timestamp if placed_event else None,
        "is_completed": True,
        "is_current": effective == ORDER_PLACED,
    }]

    # cancelled and unknown statuses stop at "Order Placed"
    if current_index == -1:
        return stages

    if timeline:
        for definition in ORDER_STAGES[1:]:
            event = _find_event(timeline, definition["stage"])
            stages.append({
                "stage": definition["stage"],
                "description": definition["description"],
                "timestamp": event.timestamp if event else None,
                "is_completed": bool(event.is_completed) if event else False,
                "is_current": definition["stage"] == effective,
            })
        return stages

    for index, definition in enumerate(ORDER_STAGES[1:current_index + 1], start=1):
        stages.append({
            "stage": definition["stage"],
            "description": definition["description"],
            "timestamp": None,
            "is_completed": index < current_index,
            "is_current": index == current_index,
        })

    return stages
