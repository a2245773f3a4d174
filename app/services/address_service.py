from datetime import datetime
from typing import List

from sqlalchemy import update
from sqlmodel import Session, col, select

from app.exceptions import ConflictError, NotFoundError
from app.models.address import Address
from app.models.order import Order
from app.schemas.address_schemas import AddressCreate, AddressOut, AddressUpdate


def to_address_out(address: Address) -> AddressOut:
    return AddressOut.model_validate(address, from_attributes=True)


def list_addresses(session: Session, user_id: int) -> List[Address]:
    return session.exec(
        select(Address)
        .where(Address.user_id == user_id)
        .order_by(Address.is_default.desc(), Address.created_at.desc())
    ).all()


def get_default_address(session: Session, user_id: int):
    addresses = list_addresses(session, user_id)
    return addresses[0] if addresses else None


def get_user_address(session: Session, user_id: int, address_id: int) -> Address:
    address = session.get(Address, address_id)
    if not address or address.user_id != user_id:
        raise NotFoundError("Address not found")
    return address


def _unset_defaults(session: Session, user_id: int):
    session.execute(
        update(Address)
        .where(col(Address.user_id) == user_id, col(Address.is_default) == True)  # noqa: E712
        .values(is_default=False)
        .execution_options(synchronize_session="fetch")
    )


def add_address(session: Session, user_id: int, data: AddressCreate) -> Address:
    if data.is_default:
        _unset_defaults(session, user_id)

    address = Address(user_id=user_id, **data.model_dump())
    session.add(address)
    session.commit()
    session.refresh(address)
    return address


def update_address(session: Session, user_id: int, address_id: int, data: AddressUpdate) -> Address:
    address = get_user_address(session, user_id, address_id)

    changes = data.model_dump(exclude_unset=True)
    if changes.get("is_default"):
        _unset_defaults(session, user_id)

    for key, value in changes.items():
        setattr(address, key, value)
    address.updated_at = datetime.utcnow()

    session.add(address)
    session.commit()
    session.refresh(address)
    return address


def set_default_address(session: Session, user_id: int, address_id: int) -> Address:
    """Unset every default of the user, then flag this one, in one commit."""
    address = get_user_address(session, user_id, address_id)

    _unset_defaults(session, user_id)
    address.is_default = True
    address.updated_at = datetime.utcnow()

    session.add(address)
    session.commit()
    session.refresh(address)
    return address


def delete_address(session: Session, user_id: int, address_id: int):
    address = get_user_address(session, user_id, address_id)

    # check if the address is used in any order
    existing_order = session.exec(
        select(Order).where(Order.address_id == address_id)
    ).first()

    if existing_order:
        raise ConflictError(
            "Address cannot be deleted because it is linked to an existing order."
        )

    session.delete(address)
    session.commit()
