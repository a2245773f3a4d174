from enum import Enum


class OrderStatus(str, Enum):
    preparing = "Preparing"
    order_ready = "Order Ready"
    picked_up = "Picked Up"
    out_for_delivery = "Out for Delivery"
    delivered = "Delivered"
    cancelled = "Cancelled"


VALID_STATUSES = [s.value for s in OrderStatus]

TERMINAL_STATUSES = {OrderStatus.delivered.value, OrderStatus.cancelled.value}

INITIAL_STATUS = OrderStatus.preparing.value

# Canonical tracking stages, in display order
ORDER_PLACED = "Order Placed"
ORDER_STAGES = [
    {
        "stage": ORDER_PLACED,
        "description": "We have received your order request.",
    },
    {
        "stage": "Order Ready",
        "description": "Fresh cuts are packed and ready for pickup.",
    },
    {
        "stage": "Out for Delivery",
        "description": "Your order is on the way to you.",
    },
    {
        "stage": "Delivered",
        "description": "Your order has been delivered.",
    },
]

# Raw statuses that are not stage names themselves
STATUS_TO_STAGE = {
    "Preparing": "Order Ready",
    "Picked Up": "Out for Delivery",
}

# Message stored on the timeline when no note is supplied
STATUS_DESCRIPTIONS = {
    "Preparing": "Butcher is hand-cutting your order.",
    "Order Ready": "Fresh cuts are packed and ready for pickup.",
    "Picked Up": "Delivery partner has picked up your order.",
    "Out for Delivery": "Order is on the way to your doorstep.",
    "Delivered": "Enjoy your fresh order!",
    "Cancelled": "Amount will be refunded within 24 hours.",
}

# Stage name written to order_timeline for each status update
STATUS_TIMELINE_STAGE = {
    "Preparing": ORDER_PLACED,
    "Order Ready": "Order Ready",
    "Picked Up": "Picked Up",
    "Out for Delivery": "Out for Delivery",
    "Delivered": "Delivered",
    "Cancelled": "Order Cancelled",
}
