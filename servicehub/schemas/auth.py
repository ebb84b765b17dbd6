"""Request and response schemas for authentication routes."""

from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from ..core.constants import MAX_DESCRIPTION_LENGTH, MAX_NAME_LENGTH, MIN_PASSWORD_LENGTH
from ..core.enums import RoleName, ServiceType
from ._strict_base import StrictModel
from .base import split_csv
from .user import UserResponse

SELF_SERVICE_ROLES = (RoleName.CUSTOMER, RoleName.PROVIDER)


class _ProfileFields(BaseModel):
    """Role-specific profile fields shared by registration and profile updates."""

    address: Optional[str] = Field(None, max_length=255)
    city: Optional[str] = Field(None, max_length=100)
    pincode: Optional[str] = Field(None, max_length=20)

    service_type: Optional[ServiceType] = None
    location: Optional[str] = Field(None, max_length=255)
    hourly_rate: Optional[Decimal] = Field(None, ge=1)
    experience: Optional[int] = Field(None, ge=0)
    description: Optional[str] = Field(None, max_length=MAX_DESCRIPTION_LENGTH)
    skills: Optional[List[str]] = None
    certifications: Optional[List[str]] = None

    @field_validator("skills", "certifications", mode="before")
    @classmethod
    def _split_lists(cls, v: object) -> object:
        return split_csv(v)

    @field_validator("address", "city", "pincode", "location", "description")
    @classmethod
    def _strip(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v else v


class RegisterRequest(_ProfileFields):
    """
    Self-service registration.

    Customers must supply address, city and pincode. Providers must supply
    service_type, location and hourly_rate. Admin accounts are never
    created through this endpoint.
    """

    name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)
    email: EmailStr
    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH)
    phone_number: str = Field(..., min_length=1, max_length=20)
    role: RoleName

    @field_validator("name", "phone_number")
    @classmethod
    def _strip_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Field cannot be blank")
        return v

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("role")
    @classmethod
    def _self_service_role(cls, v: RoleName) -> RoleName:
        if v not in SELF_SERVICE_ROLES:
            raise ValueError("Role must be customer or provider")
        return v

    @model_validator(mode="after")
    def _role_fields(self) -> "RegisterRequest":
        required = (
            ("address", "city", "pincode")
            if self.role == RoleName.CUSTOMER
            else ("service_type", "location", "hourly_rate")
        )
        missing = [f for f in required if not getattr(self, f)]
        if missing:
            raise ValueError(f"Missing required fields for {self.role.value}: {', '.join(missing)}")
        return self


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)
    role: Optional[RoleName] = None

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class ProfileUpdateRequest(_ProfileFields):
    """Partial profile update. Only the fields sent are changed."""

    name: Optional[str] = Field(None, min_length=1, max_length=MAX_NAME_LENGTH)
    email: Optional[EmailStr] = None
    phone_number: Optional[str] = Field(None, min_length=1, max_length=20)
    profile_image: Optional[str] = Field(None, max_length=500)

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().lower() if v else v


class AuthResponse(StrictModel):
    """Token plus user, returned by register and login."""

    message: str
    token: str
    user: UserResponse


class VerifyTokenResponse(StrictModel):
    valid: bool
    user: UserResponse


__all__ = [
    "AuthResponse",
    "LoginRequest",
    "ProfileUpdateRequest",
    "RegisterRequest",
    "VerifyTokenResponse",
]
