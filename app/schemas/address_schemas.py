from typing import Optional

from pydantic import Field

from app.schemas.base import CamelModel


class AddressCreate(CamelModel):
    contact_name: str = Field(min_length=1)
    phone: str = Field(min_length=1)
    street: str = Field(min_length=1)
    city: str = Field(min_length=1)
    state: str = Field(min_length=1)
    postal_code: str = Field(min_length=1)
    landmark: Optional[str] = None
    label: str = "Home"
    is_default: bool = False


class AddressUpdate(CamelModel):
    contact_name: Optional[str] = None
    phone: Optional[str] = None
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    landmark: Optional[str] = None
    label: Optional[str] = None
    is_default: Optional[bool] = None


class AddressOut(CamelModel):
    id: int
    contact_name: str
    phone: str
    street: str
    city: str
    state: str
    postal_code: str
    landmark: Optional[str] = None
    label: str = "Home"
    is_default: bool = False
