from fastapi import APIRouter, Depends, Request, status
from sqlmodel import Session

from app.database import get_session
from app.models.user import User
from app.schemas.user_schemas import (
    PhoneRequest,
    ResetPasswordRequest,
    UserLogin,
    UserRegister,
    VerifyResetOtpRequest,
)
from app.services import auth_service
from app.utils.responses import message_response, success_response
from app.utils.token import get_bearer_token, get_current_user

router = APIRouter()


# -------- AUTH ROUTES --------

@router.post("/signup", status_code=status.HTTP_201_CREATED)
def signup(
    payload: UserRegister,
    request: Request,
    session: Session = Depends(get_session),
):
    user, token = auth_service.register_user(session, payload, request)
    return success_response({"user": auth_service.user_payload(user), "token": token})


@router.post("/signin")
def signin(
    payload: UserLogin,
    request: Request,
    session: Session = Depends(get_session),
):
    user, token = auth_service.authenticate(session, payload, request)
    return success_response({"user": auth_service.user_payload(user), "token": token})


@router.get("/verify")
def verify(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    profile = auth_service.get_profile(session, current_user)
    user = auth_service.user_payload(profile)
    user["id"] = current_user.id
    return success_response({"user": user})


@router.post("/signout")
def signout(
    request: Request,
    token: str = Depends(get_bearer_token),
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    auth_service.sign_out(session, current_user, token, request)
    return message_response("Signed out successfully")


@router.post("/check-phone")
def check_phone(payload: PhoneRequest, session: Session = Depends(get_session)):
    exists = auth_service.phone_exists(session, payload.phone)
    return success_response({
        "exists": exists,
        "message": (
            "This phone number is already registered"
            if exists
            else "Phone number is available"
        ),
    })


# -------- PASSWORD RESET --------

@router.post("/forgot-password")
def forgot_password(payload: PhoneRequest, session: Session = Depends(get_session)):
    return success_response(auth_service.request_password_reset(session, payload.phone))


@router.post("/verify-reset-otp")
def verify_reset_otp(payload: VerifyResetOtpRequest):
    auth_service.reset_store.verify(payload.phone, payload.otp)
    return message_response("OTP verified successfully. You can now reset your password.")


@router.post("/reset-password")
def reset_password(
    payload: ResetPasswordRequest,
    request: Request,
    session: Session = Depends(get_session),
):
    auth_service.reset_password(session, payload.phone, payload.new_password, request)
    return message_response(
        "Password reset successfully. You can now sign in with your new password."
    )
