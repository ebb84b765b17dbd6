"""Payment schemas (Stripe PaymentIntents)."""

from typing import Optional

from pydantic import Field, field_validator

from ._strict_base import StrictModel, StrictRequestModel
from .booking import BookingResponse


class CreateOrderRequest(StrictRequestModel):
    booking_id: str = Field(..., min_length=1)
    amount: Optional[int] = Field(None, gt=0, description="Smallest currency unit")
    currency: Optional[str] = Field(None, min_length=3, max_length=3)

    @field_validator("currency")
    @classmethod
    def _lower(cls, v: Optional[str]) -> Optional[str]:
        return v.lower() if v else v


class OrderResponse(StrictModel):
    id: str
    amount: int
    currency: str
    receipt: str
    client_secret: Optional[str] = None
    status: Optional[str] = None


class CreateOrderResponse(StrictModel):
    order: OrderResponse


class VerifyPaymentRequest(StrictRequestModel):
    booking_id: str = Field(..., min_length=1)
    order_id: str = Field(..., min_length=1)


class VerifyPaymentResponse(StrictModel):
    message: str
    booking: BookingResponse


class WebhookAck(StrictModel):
    received: bool = True
