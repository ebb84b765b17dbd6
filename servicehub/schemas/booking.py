"""
Booking schemas.

``BookingCreate`` validates the multipart form of a new booking request;
the response models flatten the counterpart's name into each booking.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from ..core.constants import MAX_DESCRIPTION_LENGTH
from ..core.enums import ServiceType
from ..models.booking import Booking
from ._strict_base import StrictModel, StrictRequestModel
from .base import Money, StandardizedModel, validate_hhmm


class BookingCreate(BaseModel):
    """Fields of a booking request (sent as multipart form data)."""

    provider_id: str = Field(..., min_length=1)
    service_type: ServiceType
    description: str = Field(..., min_length=1, max_length=MAX_DESCRIPTION_LENGTH)
    scheduled_date: date
    scheduled_time: str
    estimated_hours: Decimal = Field(..., gt=0)
    address: str = Field(..., min_length=1, max_length=500)
    total_cost: Decimal = Field(..., ge=0)

    @field_validator("scheduled_time", mode="before")
    @classmethod
    def _hhmm(cls, v: object) -> object:
        return validate_hhmm(v)

    @field_validator("provider_id", "description", "address", mode="before")
    @classmethod
    def _strip(cls, v: object) -> object:
        return v.strip() if isinstance(v, str) else v


class AttachmentResponse(StandardizedModel):
    url: str
    filename: str
    mimetype: str


class BookingResponse(StandardizedModel):
    id: str
    customer_id: str
    provider_id: str
    service_type: str
    description: str
    scheduled_date: datetime
    scheduled_time: str
    estimated_hours: Money
    address: str
    total_cost: Money
    status: str
    payment_status: str
    payment_order_id: Optional[str] = None
    payment_id: Optional[str] = None
    rating: Optional[int] = None
    comment: Optional[str] = None
    attachments: List[AttachmentResponse] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    provider_name: Optional[str] = None
    customer_name: Optional[str] = None

    @classmethod
    def from_booking(
        cls,
        booking: Booking,
        *,
        with_provider_name: bool = False,
        with_customer_name: bool = False,
    ) -> "BookingResponse":
        response = cls.model_validate(booking)
        if with_provider_name and booking.provider is not None:
            response.provider_name = booking.provider.name
        if with_customer_name and booking.customer is not None:
            response.customer_name = booking.customer.name
        return response


class BookingEnvelope(StrictModel):
    message: str
    booking: BookingResponse


class BookingStatusUpdate(StrictRequestModel):
    status: Literal["confirmed", "in-progress", "completed", "cancelled"]


class BookingRating(StrictRequestModel):
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=1000)

    @field_validator("comment")
    @classmethod
    def clean_comment(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v else v


class BookingReschedule(StrictRequestModel):
    scheduled_date: date
    scheduled_time: str

    @field_validator("scheduled_time", mode="before")
    @classmethod
    def _hhmm(cls, v: object) -> object:
        return validate_hhmm(v)
