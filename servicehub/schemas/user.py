from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import EmailStr, Field

from .base import Money, StandardizedModel


class UserResponse(StandardizedModel):
    """Public view of an account. Never carries the password hash."""

    id: str
    email: EmailStr
    name: str
    phone_number: str
    role: str

    address: Optional[str] = None
    city: Optional[str] = None
    pincode: Optional[str] = None

    service_type: Optional[str] = None
    location: Optional[str] = None
    hourly_rate: Optional[Money] = None
    experience: Optional[int] = None
    description: Optional[str] = None
    skills: List[str] = Field(default_factory=list)
    certifications: List[str] = Field(default_factory=list)
    availability: Dict[str, Any] = Field(default_factory=dict)
    rating: Money = Money("0")

    profile_image: Optional[str] = None
    is_active: bool = True
    is_verified: bool = False
    created_at: Optional[datetime] = None
