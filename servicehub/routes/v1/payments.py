# servicehub/routes/v1/payments.py
"""
Payment routes - API v1

Stripe PaymentIntent checkout for bookings.

Endpoints:
    POST /create-order                   → PaymentIntent for a booking (customer)
    POST /verify-payment                 → Confirm after client checkout (customer)
    POST /webhook                        → Signed Stripe callbacks (public)
"""

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, Request

from ...api.dependencies.auth import get_current_customer
from ...api.dependencies.services import get_notification_service, get_payment_service
from ...core.exceptions import DomainException, handle_domain_exception
from ...models.user import User
from ...schemas.booking import BookingResponse
from ...schemas.payment import (
    CreateOrderRequest,
    CreateOrderResponse,
    OrderResponse,
    VerifyPaymentRequest,
    VerifyPaymentResponse,
    WebhookAck,
)
from ...services.notification_service import NotificationService
from ...services.payment_service import PaymentService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["payments-v1"])


@router.post("/create-order", response_model=CreateOrderResponse)
async def create_order(
    payload: CreateOrderRequest,
    current_user: User = Depends(get_current_customer),
    payment_service: PaymentService = Depends(get_payment_service),
) -> CreateOrderResponse:
    try:
        order = await asyncio.to_thread(
            payment_service.create_order,
            payload.booking_id,
            current_user,
            payload.amount,
            payload.currency,
        )
    except DomainException as e:
        handle_domain_exception(e)
    return CreateOrderResponse(order=OrderResponse(**order))


@router.post("/verify-payment", response_model=VerifyPaymentResponse)
async def verify_payment(
    payload: VerifyPaymentRequest,
    current_user: User = Depends(get_current_customer),
    payment_service: PaymentService = Depends(get_payment_service),
    notification_service: NotificationService = Depends(get_notification_service),
) -> VerifyPaymentResponse:
    try:
        booking, newly_paid = await asyncio.to_thread(
            payment_service.verify_payment, payload.booking_id, payload.order_id, current_user
        )
    except DomainException as e:
        handle_domain_exception(e)

    if newly_paid:
        await notification_service.send(
            booking.customer_id, notification_service.payment_received(booking)
        )
    return VerifyPaymentResponse(
        message="Payment verified successfully",
        booking=BookingResponse.from_booking(booking),
    )


@router.post("/webhook", response_model=WebhookAck)
async def stripe_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(None, alias="Stripe-Signature"),
    payment_service: PaymentService = Depends(get_payment_service),
    notification_service: NotificationService = Depends(get_notification_service),
) -> WebhookAck:
    """Signature-verified; the raw body is passed through untouched."""
    payload = await request.body()
    try:
        result = await asyncio.to_thread(
            payment_service.handle_webhook, payload, stripe_signature
        )
    except DomainException as e:
        handle_domain_exception(e)

    logger.info(f"[PAYMENTS] Webhook {result.event_type} processed")
    if result.booking is not None and result.newly_paid:
        await notification_service.send(
            result.booking.customer_id, notification_service.payment_received(result.booking)
        )
    return WebhookAck(received=True)
