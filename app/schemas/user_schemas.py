from pydantic import EmailStr, Field, model_validator
from typing import Optional

from app.schemas.base import CamelModel


class SignupAddress(CamelModel):
    street: str = ""
    city: str = ""
    state: str = ""
    postal_code: str = ""
    landmark: Optional[str] = None
    label: str = "Home"


class UserRegister(CamelModel):
    name: str = Field(min_length=1)
    phone: str = Field(min_length=1)
    email: Optional[EmailStr] = None
    password: str = Field(min_length=6)
    address: Optional[SignupAddress] = None
    gender: Optional[str] = None
    profile_picture: Optional[str] = None


class UserLogin(CamelModel):
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    password: str

    @model_validator(mode="after")
    def require_identifier(self):
        if not self.phone and not self.email:
            raise ValueError("Phone/email and password are required")
        return self



class ProfileUpdate(CamelModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    gender: Optional[str] = None
    profile_picture: Optional[str] = None


class PhoneRequest(CamelModel):
    phone: str = Field(min_length=1)


class VerifyResetOtpRequest(CamelModel):
    phone: str
    otp: str


class ResetPasswordRequest(CamelModel):
    phone: str
    new_password: str = Field(min_length=6)
