import logging
import secrets
import threading
from datetime import datetime, timedelta
from typing import Dict, Optional, Tuple

from fastapi import Request
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, col, select

from app.config import settings
from app.exceptions import AuthError, ConflictError, NotFoundError, ValidationError
from app.models.address import Address
from app.models.user import LoginSession, User, UserProfile
from app.schemas.user_schemas import UserLogin, UserRegister
from app.services.activity_logger import client_ip, log_activity
from app.utils.hash import hash_password, verify_password
from app.utils.token import create_access_token, token_lifetime

logger = logging.getLogger(__name__)

PHONE_TAKEN = "An account with this phone number already exists. Please sign in instead."
EMAIL_TAKEN = "An account with this email already exists. Please sign in or use a different email."

RESET_OTP_TTL = timedelta(minutes=10)


def user_payload(user) -> dict:
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "phone": user.phone,
    }


def _find_by_phone(session: Session, phone: str) -> Optional[User]:
    return session.exec(select(User).where(User.phone == phone)).first()


def phone_exists(session: Session, phone: str) -> bool:
    if _find_by_phone(session, phone):
        return True
    return session.exec(
        select(UserProfile).where(UserProfile.phone == phone)
    ).first() is not None


def _email_exists(session: Session, email: str) -> bool:
    if session.exec(select(User).where(User.email == email)).first():
        return True
    return session.exec(
        select(UserProfile).where(UserProfile.email == email)
    ).first() is not None


def open_login_session(
    session: Session,
    user: User,
    request: Optional[Request] = None,
) -> str:
    now = datetime.utcnow()
    token = create_access_token(user.id, issued_at=now)

    session.add(
        LoginSession(
            user_id=user.id,
            token=token,
            ip_address=client_ip(request),
            user_agent=request.headers.get("user-agent") if request else None,
            login_at=now,
            last_activity_at=now,
            expires_at=now + token_lifetime(),
        )
    )
    session.commit()
    return token


# -------- signup / signin --------

def register_user(
    session: Session,
    data: UserRegister,
    request: Optional[Request] = None,
) -> Tuple[User, str]:
    if phone_exists(session, data.phone):
        raise ConflictError(PHONE_TAKEN)

    email = str(data.email) if data.email else None
    if email and _email_exists(session, email):
        raise ConflictError(EMAIL_TAKEN)

    now = datetime.utcnow()
    user = User(
        name=data.name,
        email=email,
        phone=data.phone,
        password=hash_password(data.password),
        created_at=now,
        updated_at=now,
    )

    try:
        session.add(user)
        session.flush()

        session.add(
            UserProfile(
                id=user.id,
                name=data.name,
                email=email,
                phone=data.phone,
                gender=data.gender,
                profile_picture=data.profile_picture,
            )
        )

        if data.address:
            session.add(
                Address(
                    user_id=user.id,
                    contact_name=data.name,
                    phone=data.phone,
                    is_default=True,
                    **data.address.model_dump(),
                )
            )

        session.commit()
    except IntegrityError:
        session.rollback()
        raise ConflictError("An account with these details already exists.")

    session.refresh(user)
    token = open_login_session(session, user, request)
    logger.info(f"User {user.id} registered")

    log_activity(
        session,
        user.id,
        "SIGN_UP",
        "New user registered",
        entity_type="user",
        entity_id=user.id,
        meta={"phone": user.phone, "email": user.email, "hasAddress": bool(data.address)},
        request=request,
    )
    return user, token


def authenticate(
    session: Session,
    data: UserLogin,
    request: Optional[Request] = None,
) -> Tuple[User, str]:
    if data.phone:
        query = select(User).where(User.phone == data.phone)
    else:
        query = select(User).where(User.email == str(data.email))

    user = session.exec(query).first()
    if not user:
        raise AuthError(
            "No account found with this phone number or email. "
            "Please check your details or sign up."
        )

    if not verify_password(data.password, user.password):
        logger.warning(f"Failed sign in for user {user.id}")
        raise AuthError(
            'Incorrect password. Please try again or use "Forgot Password" to reset it.'
        )

    token = open_login_session(session, user, request)
    logger.info(f"User {user.id} signed in")

    log_activity(
        session,
        user.id,
        "SIGN_IN",
        "User signed in successfully",
        entity_type="user",
        entity_id=user.id,
        meta={"phone": user.phone, "email": user.email},
        request=request,
    )
    return user, token


def get_profile(session: Session, user: User):
    """Profile row when present, else the account itself."""
    return session.get(UserProfile, user.id) or user


def sign_out(session: Session, user: User, token: str, request: Optional[Request] = None):
    session.execute(
        update(LoginSession)
        .where(
            col(LoginSession.token) == token,
            col(LoginSession.user_id) == user.id,
        )
        .values(is_active=False)
        .execution_options(synchronize_session="fetch")
    )
    session.commit()
    logger.info(f"User {user.id} signed out")

    log_activity(
        session,
        user.id,
        "SIGN_OUT",
        "User signed out",
        entity_type="user",
        entity_id=user.id,
        request=request,
    )


# -------- password reset --------

class PasswordResetStore:
    """Process-local OTP store keyed by phone number."""

    def __init__(self, ttl: timedelta = RESET_OTP_TTL):
        self.ttl = ttl
        self._entries: Dict[str, dict] = {}
        self._lock = threading.Lock()

    def issue(self, phone: str, now: Optional[datetime] = None) -> str:
        now = now or datetime.utcnow()
        otp = str(100000 + secrets.randbelow(900000))
        with self._lock:
            self._entries[phone] = {
                "otp": otp,
                "expires_at": now + self.ttl,
                "verified": False,
            }
        return otp

    def verify(self, phone: str, otp: str, now: Optional[datetime] = None):
        now = now or datetime.utcnow()
        with self._lock:
            entry = self._entries.get(phone)
            if not entry:
                raise ValidationError("Invalid or expired OTP")

            if now > entry["expires_at"]:
                del self._entries[phone]
                raise ValidationError("OTP has expired. Please request a new one.")

            if entry["otp"] != otp:
                raise ValidationError("Invalid OTP")

            entry["verified"] = True

    def consume(self, phone: str, now: Optional[datetime] = None):
        now = now or datetime.utcnow()
        with self._lock:
            entry = self._entries.get(phone)
            if not entry:
                raise ValidationError("OTP verification required. Please verify OTP first.")

            if not entry["verified"]:
                raise ValidationError("OTP must be verified before resetting password.")

            if now > entry["expires_at"]:
                del self._entries[phone]
                raise ValidationError("OTP has expired. Please request a new one.")

            del self._entries[phone]

    def clear(self):
        with self._lock:
            self._entries.clear()


reset_store = PasswordResetStore()


def request_password_reset(session: Session, phone: str) -> dict:
    # unknown numbers get the same answer so accounts can't be probed
    if not _find_by_phone(session, phone):
        return {"message": "If the phone number exists, an OTP has been sent."}

    otp = reset_store.issue(phone)
    logger.info(f"Password reset OTP issued for {phone}")

    data = {"message": "OTP has been sent to your WhatsApp number."}
    if settings.env == "local":
        data["otp"] = otp
    return data


def reset_password(
    session: Session,
    phone: str,
    new_password: str,
    request: Optional[Request] = None,
):
    reset_store.consume(phone)

    user = _find_by_phone(session, phone)
    if not user:
        raise NotFoundError("User not found")

    user.password = hash_password(new_password)
    user.updated_at = datetime.utcnow()
    session.add(user)

    # a new password signs out every device
    session.execute(
        update(LoginSession)
        .where(col(LoginSession.user_id) == user.id)
        .values(is_active=False)
        .execution_options(synchronize_session="fetch")
    )
    session.commit()
    logger.info(f"Password reset for user {user.id}")

    log_activity(
        session,
        user.id,
        "PASSWORD_RESET",
        "User reset password",
        entity_type="user",
        entity_id=user.id,
        request=request,
    )


