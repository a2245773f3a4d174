# app/services/order_timeline_service.py

from datetime import datetime
from typing import List, Optional
from sqlmodel import Session, select
from app.models.order_timeline import OrderTimelineEvent


def append_timeline_event(
    session: Session,
    order_id: int,
    stage: str,
    description: str,
    is_completed: bool = True,
    timestamp: Optional[datetime] = None,
) -> OrderTimelineEvent:
    """
    Append-only event log for order timeline
    """

    event = OrderTimelineEvent(
        order_id=order_id,
        stage=stage,
        description=description,
        is_completed=is_completed,
        timestamp=timestamp or datetime.utcnow(),
    )

    session.add(event)
    return event


def get_timeline(session: Session, order_id: int) -> List[OrderTimelineEvent]:
    return session.exec(
        select(OrderTimelineEvent)
        .where(OrderTimelineEvent.order_id == order_id)
        .order_by(OrderTimelineEvent.timestamp, OrderTimelineEvent.id)
    ).all()
