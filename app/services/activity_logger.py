import logging
from typing import Optional

from fastapi import Request
from sqlmodel import Session

from app.models.activity_log import UserActivityLog

logger = logging.getLogger(__name__)


def client_ip(request: Optional[Request]) -> Optional[str]:
    if request is None:
        return None
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


def log_activity(
    session: Session,
    user_id: Optional[int],
    activity_type: str,
    description: str,
    entity_type: Optional[str] = None,
    entity_id=None,
    meta: Optional[dict] = None,
    request: Optional[Request] = None,
):
    """
    Record a user activity row. Never raises: call it after the primary
    write has been committed.
    """
    if not user_id:
        return

    try:
        session.add(
            UserActivityLog(
                user_id=user_id,
                activity_type=activity_type,
                activity_description=description,
                entity_type=entity_type,
                entity_id=str(entity_id) if entity_id is not None else None,
                meta=meta,
                ip_address=client_ip(request),
                user_agent=request.headers.get("user-agent") if request else None,
            )
        )
        session.commit()
    except Exception:
        session.rollback()
        logger.exception(f"Error logging activity {activity_type} for user {user_id}")
