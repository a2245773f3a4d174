import logging
from datetime import datetime

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from app.exceptions import ConflictError
from app.models.user import User, UserProfile
from app.schemas.user_schemas import ProfileUpdate
from app.services.address_service import list_addresses, to_address_out

logger = logging.getLogger(__name__)


def _profile_for(session: Session, user: User) -> UserProfile:
    profile = session.get(UserProfile, user.id)
    if profile is None:
        # accounts created before profiles existed
        profile = UserProfile(id=user.id, name=user.name, email=user.email, phone=user.phone)
        session.add(profile)
    return profile


def get_profile_details(session: Session, user: User) -> dict:
    profile = session.get(UserProfile, user.id)
    source = profile or user

    addresses = [
        to_address_out(a).model_dump(by_alias=True)
        for a in list_addresses(session, user.id)
    ]
    default = next((a for a in addresses if a["isDefault"]), None)
    if default is None and addresses:
        default = addresses[0]

    return {
        "id": user.id,
        "name": source.name,
        "email": source.email or "",
        "phone": source.phone,
        "gender": profile.gender if profile else None,
        "profilePicture": profile.profile_picture if profile else None,
        "address": default,
        "addresses": addresses,
    }


def update_profile(session: Session, user: User, data: ProfileUpdate) -> dict:
    changes = data.model_dump(exclude_unset=True)
    if "email" in changes and changes["email"] is not None:
        changes["email"] = str(changes["email"])

    if changes.get("phone") and changes["phone"] != user.phone:
        taken = session.exec(
            select(User).where(User.phone == changes["phone"], User.id != user.id)
        ).first()
        if taken:
            raise ConflictError("An account with this phone number already exists.")

    if changes.get("email") and changes["email"] != user.email:
        taken = session.exec(
            select(User).where(User.email == changes["email"], User.id != user.id)
        ).first()
        if taken:
            raise ConflictError("An account with this email already exists.")

    now = datetime.utcnow()
    profile = _profile_for(session, user)

    for key, value in changes.items():
        setattr(profile, key, value)
        # the account row mirrors the identity fields
        if key in ("name", "email", "phone") and value is not None:
            setattr(user, key, value)

    profile.updated_at = now
    user.updated_at = now
    session.add(profile)
    session.add(user)

    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        raise ConflictError("An account with these details already exists.")

    logger.info(f"Profile of user {user.id} updated: {sorted(changes)}")
    return {"updated_fields": sorted(changes)}
