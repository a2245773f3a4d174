from datetime import datetime, timedelta

import pytest
from sqlmodel import select

from app.config import settings
from app.exceptions import ValidationError
from app.models.activity_log import UserActivityLog
from app.models.address import Address
from app.models.user import LoginSession, User, UserProfile
from app.services.auth_service import PasswordResetStore, reset_store
from app.utils.token import create_access_token
from tests.conftest import PASSWORD


def test_signup_creates_user_profile_address_and_session(client, session, signup):
    user, headers = signup(phone="9222222222", email="asha@example.com")

    assert user["phone"] == "9222222222"
    assert user["email"] == "asha@example.com"

    stored = session.get(User, user["id"])
    assert stored.password != PASSWORD
    assert session.get(UserProfile, user["id"]) is not None

    address = session.exec(select(Address).where(Address.user_id == user["id"])).one()
    assert address.is_default is True
    assert address.postal_code == "520010"

    login = session.exec(select(LoginSession).where(LoginSession.user_id == user["id"])).one()
    assert login.is_active is True
    assert login.expires_at - login.login_at == timedelta(days=30)

    activity = session.exec(select(UserActivityLog)).all()
    assert [a.activity_type for a in activity] == ["SIGN_UP"]


def test_signup_duplicate_phone(client, signup):
    signup(phone="9333333333")

    response = client.post(
        "/api/auth/signup",
        json={"name": "Other", "phone": "9333333333", "password": PASSWORD},
    )

    assert response.status_code == 409
    assert response.json() == {
        "success": False,
        "error": {"message": "An account with this phone number already exists. Please sign in instead."},
    }


def test_signup_duplicate_email(client, signup):
    signup(phone="9333333333", email="dup@example.com")

    response = client.post(
        "/api/auth/signup",
        json={"name": "Other", "phone": "9444444444", "email": "dup@example.com", "password": PASSWORD},
    )
    assert response.status_code == 409


def test_signup_requires_fields(client):
    response = client.post("/api/auth/signup", json={"name": "No phone", "password": PASSWORD})

    assert response.status_code == 400
    assert response.json()["success"] is False


def test_signin_by_phone_and_email(client, make_user):
    make_user(phone="9555555555", email="ravi@example.com")

    by_phone = client.post("/api/auth/signin", json={"phone": "9555555555", "password": PASSWORD})
    by_email = client.post("/api/auth/signin", json={"email": "ravi@example.com", "password": PASSWORD})

    assert by_phone.status_code == 200
    assert by_email.status_code == 200
    assert by_phone.json()["data"]["token"]
    assert by_email.json()["data"]["user"]["phone"] == "9555555555"


def test_signin_unknown_account(client):
    response = client.post("/api/auth/signin", json={"phone": "9000000000", "password": PASSWORD})

    assert response.status_code == 401
    assert response.json()["error"]["message"].startswith("No account found")


def test_signin_wrong_password(client, make_user):
    make_user(phone="9555555555")

    response = client.post("/api/auth/signin", json={"phone": "9555555555", "password": "wrong-pass"})

    assert response.status_code == 401
    assert response.json()["error"]["message"].startswith("Incorrect password")


def test_signin_requires_phone_or_email(client):
    response = client.post("/api/auth/signin", json={"password": PASSWORD})
    assert response.status_code == 400


def test_verify_returns_user(client, signup):
    user, headers = signup(name="Asha")

    response = client.get("/api/auth/verify", headers=headers)

    assert response.status_code == 200
    assert response.json()["data"]["user"] == {
        "id": user["id"],
        "name": "Asha",
        "email": None,
        "phone": user["phone"],
    }


def test_missing_token(client):
    response = client.get("/api/auth/verify")

    assert response.status_code == 401
    assert response.json() == {"success": False, "error": {"message": "No token provided"}}


def test_malformed_token(client):
    response = client.get("/api/auth/verify", headers={"Authorization": "Bearer garbage"})

    assert response.status_code == 401
    assert response.json()["error"]["message"] == "Invalid or expired token"


def test_expired_token(client, make_user, session):
    user = make_user()
    issued = datetime.utcnow() - timedelta(days=31)
    token = create_access_token(user.id, issued_at=issued)
    session.add(LoginSession(user_id=user.id, token=token, login_at=issued, expires_at=issued + timedelta(days=30)))
    session.commit()

    response = client.get("/api/auth/verify", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


def test_valid_signature_without_session_is_rejected(client, make_user):
    user = make_user()
    token = create_access_token(user.id)

    response = client.get("/api/auth/verify", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


def test_signout_deactivates_session(client, signup):
    _, headers = signup()

    assert client.post("/api/auth/signout", headers=headers).status_code == 200
    assert client.get("/api/auth/verify", headers=headers).status_code == 401


def test_check_phone(client, signup):
    signup(phone="9666666666")

    taken = client.post("/api/auth/check-phone", json={"phone": "9666666666"}).json()["data"]
    free = client.post("/api/auth/check-phone", json={"phone": "9777777777"}).json()["data"]

    assert taken["exists"] is True
    assert free == {"exists": False, "message": "Phone number is available"}


# -------- password reset --------

def test_password_reset_flow(client, make_user, monkeypatch):
    make_user(phone="9888888888")
    monkeypatch.setattr(settings, "env", "local")

    sent = client.post("/api/auth/forgot-password", json={"phone": "9888888888"})
    otp = sent.json()["data"]["otp"]

    verified = client.post("/api/auth/verify-reset-otp", json={"phone": "9888888888", "otp": otp})
    reset = client.post(
        "/api/auth/reset-password",
        json={"phone": "9888888888", "newPassword": "brand-new-pass"},
    )

    assert verified.status_code == 200
    assert reset.status_code == 200

    old = client.post("/api/auth/signin", json={"phone": "9888888888", "password": PASSWORD})
    new = client.post("/api/auth/signin", json={"phone": "9888888888", "password": "brand-new-pass"})
    assert old.status_code == 401
    assert new.status_code == 200


def test_forgot_password_does_not_reveal_unknown_numbers(client):
    response = client.post("/api/auth/forgot-password", json={"phone": "9000000099"})

    assert response.status_code == 200
    assert "otp" not in response.json()["data"]


def test_reset_requires_verified_otp(client, make_user):
    make_user(phone="9888888888")
    reset_store.issue("9888888888")

    response = client.post(
        "/api/auth/reset-password",
        json={"phone": "9888888888", "newPassword": "brand-new-pass"},
    )

    assert response.status_code == 400
    assert response.json()["error"]["message"] == "OTP must be verified before resetting password."


def test_wrong_otp(client):
    reset_store.issue("9888888888")

    response = client.post("/api/auth/verify-reset-otp", json={"phone": "9888888888", "otp": "000000x"})

    assert response.status_code == 400
    assert response.json()["error"]["message"] == "Invalid OTP"


def test_otp_expires_after_ten_minutes():
    store = PasswordResetStore()
    issued = datetime(2026, 1, 1, 10, 0)
    otp = store.issue("9000000001", now=issued)

    with pytest.raises(ValidationError, match="expired"):
        store.verify("9000000001", otp, now=issued + timedelta(minutes=11))

    with pytest.raises(ValidationError, match="Invalid or expired OTP"):
        store.verify("9000000001", otp, now=issued)
