import logging
from jose import jwt, JWTError
from datetime import datetime, timedelta
from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel import Session, select
from app.config import settings
from app.database import get_session
from app.exceptions import AuthError
from app.models.user import User, LoginSession

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def _epoch_ms(moment: datetime) -> int:
    return int((moment - datetime(1970, 1, 1)).total_seconds() * 1000)


def token_lifetime() -> timedelta:
    return timedelta(days=settings.token_expire_days)


def create_access_token(user_id: int, issued_at: Optional[datetime] = None) -> str:
    """Signed token carrying the user id and the issue time in epoch millis.

    Expiry is absolute from ``issued_at``; using the token does not extend it.
    """
    issued_at = issued_at or datetime.utcnow()
    to_encode = {"user_id": user_id, "timestamp": _epoch_ms(issued_at)}

    return jwt.encode(
        to_encode,
        settings.secret_key,
        algorithm=settings.algorithm
    )


def decode_access_token(token: str):
    try:
        return jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.algorithm],
        )
    except JWTError:
        return None


def verify_token(token: str, now: Optional[datetime] = None) -> Optional[int]:
    """Return the user id for a live token, ``None`` if bad or older than the lifetime."""
    payload = decode_access_token(token)
    if not payload:
        return None

    user_id = payload.get("user_id")
    issued_ms = payload.get("timestamp")
    if user_id is None or not isinstance(issued_ms, (int, float)):
        return None

    now = now or datetime.utcnow()
    age_ms = _epoch_ms(now) - issued_ms
    if age_ms >= token_lifetime().total_seconds() * 1000:
        return None

    return int(user_id)


def get_active_login_session(session: Session, token: str) -> Optional[LoginSession]:
    return session.exec(
        select(LoginSession).where(
            LoginSession.token == token,
            LoginSession.is_active == True,  # noqa: E712
        )
    ).first()


def touch_login_session(session: Session, login_session: LoginSession):
    # best effort, a failed write must not reject the request
    try:
        login_session.last_activity_at = datetime.utcnow()
        session.add(login_session)
        session.commit()
    except Exception:
        session.rollback()
        logger.exception("Error updating last activity")


def get_current_user(
    creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    session: Session = Depends(get_session)
) -> User:
    if not creds or not creds.credentials:
        raise AuthError("No token provided")

    token = creds.credentials
    user_id = verify_token(token)

    if user_id is None:
        raise AuthError("Invalid or expired token")

    login_session = get_active_login_session(session, token)
    if login_session is None or login_session.user_id != user_id:
        raise AuthError("Invalid or expired token")

    user = session.get(User, user_id)
    if user is None:
        raise AuthError("User not found")

    touch_login_session(session, login_session)
    return user


def get_bearer_token(
    creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[str]:
    return creds.credentials if creds else None
