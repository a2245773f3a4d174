from fastapi import APIRouter, Depends, Request, status
from sqlmodel import Session

from app.database import get_session
from app.models.user import User
from app.schemas.address_schemas import AddressCreate, AddressUpdate
from app.schemas.user_schemas import ProfileUpdate
from app.services import address_service, user_service
from app.services.activity_logger import log_activity
from app.utils.responses import message_response, success_response
from app.utils.token import get_current_user

router = APIRouter()


def _address(address) -> dict:
    return address_service.to_address_out(address).model_dump(by_alias=True)


# -------- USER PROFILE --------

@router.get("/profile")
def get_profile(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return success_response(user_service.get_profile_details(session, current_user))


@router.patch("/profile")
def update_profile(
    payload: ProfileUpdate,
    request: Request,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    result = user_service.update_profile(session, current_user, payload)

    log_activity(
        session,
        current_user.id,
        "PROFILE_UPDATED",
        "User profile updated",
        entity_type="user",
        entity_id=current_user.id,
        meta={"updatedFields": result["updated_fields"]},
        request=request,
    )
    return success_response(user_service.get_profile_details(session, current_user))


# -------- ADDRESSES --------

@router.get("/addresses")
def get_addresses(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    addresses = address_service.list_addresses(session, current_user.id)
    return success_response([_address(a) for a in addresses])


@router.post("/addresses", status_code=status.HTTP_201_CREATED)
def add_address(
    payload: AddressCreate,
    request: Request,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    address = address_service.add_address(session, current_user.id, payload)

    log_activity(
        session,
        current_user.id,
        "ADDRESS_ADDED",
        f"Address added: {address.label}",
        entity_type="address",
        entity_id=address.id,
        request=request,
    )
    return success_response(_address(address))


@router.patch("/addresses/{address_id}")
def update_address(
    address_id: int,
    payload: AddressUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    address = address_service.update_address(session, current_user.id, address_id, payload)
    return success_response(_address(address))


@router.delete("/addresses/{address_id}")
def delete_address(
    address_id: int,
    request: Request,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    address_service.delete_address(session, current_user.id, address_id)

    log_activity(
        session,
        current_user.id,
        "ADDRESS_DELETED",
        "Address deleted",
        entity_type="address",
        entity_id=address_id,
        request=request,
    )
    return message_response("Address deleted successfully")


@router.patch("/addresses/{address_id}/default")
def set_default_address(
    address_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    address = address_service.set_default_address(session, current_user.id, address_id)
    return success_response(_address(address))
