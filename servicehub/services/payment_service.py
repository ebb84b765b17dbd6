# servicehub/services/payment_service.py
"""
Payment Service for the ServiceHub Platform

Booking payments through Stripe PaymentIntents:
- create_order: a PaymentIntent for the booking's cost (smallest currency
  unit), tagged with the booking id in its metadata
- verify_payment: client-driven confirmation after checkout
- handle_webhook: signed gateway callbacks for succeeded/failed intents

Gateway failures surface as PaymentException (502). A failed or
mismatched verification is a 400.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
import logging
from typing import Any, Dict, Optional, Tuple

from sqlalchemy.orm import Session
import stripe

from ..core.config import settings
from ..core.enums import PaymentStatus
from ..core.exceptions import NotFoundException, PaymentException, ValidationException
from ..models.booking import Booking
from ..models.user import User
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)

INTENT_SUCCEEDED = "succeeded"
INTENT_CANCELED = "canceled"
EVENT_INTENT_SUCCEEDED = "payment_intent.succeeded"
EVENT_INTENT_FAILED = "payment_intent.payment_failed"


def receipt_for(booking_id: str) -> str:
    return f"receipt_booking_{booking_id}"


def amount_in_minor_units(total_cost: Any) -> int:
    """``total_cost`` (major units) times 100, rounded half up."""
    return int((Decimal(str(total_cost)) * 100).quantize(Decimal("1"), ROUND_HALF_UP))


@dataclass
class WebhookResult:
    event_type: str
    booking: Optional[Booking] = None
    newly_paid: bool = False


class PaymentService(BaseService):
    """Service for Stripe-backed booking payments."""

    def __init__(self, db: Session) -> None:
        super().__init__(db)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)

        secret = settings.stripe_secret_key.get_secret_value()
        if secret:
            stripe.api_key = secret
            stripe.max_network_retries = 1
        else:
            self.logger.warning("[PAYMENTS] Stripe secret key not configured")

    def _get_customer_booking(self, booking_id: str, customer: User) -> Booking:
        booking = self.booking_repository.get_by_id(booking_id, load_relationships=False)
        if not booking or booking.customer_id != customer.id:
            raise NotFoundException("Booking not found")
        return booking

    def _mark_paid(self, booking: Booking, order_id: str, payment_id: Optional[str]) -> bool:
        """Returns True when the booking was not already paid."""
        newly_paid = not booking.is_paid
        with self.transaction():
            booking.payment_status = PaymentStatus.PAID.value
            booking.payment_order_id = order_id
            booking.payment_id = payment_id or booking.payment_id
            self.db.flush()
        self.logger.info(f"[PAYMENTS] Booking {booking.id} marked paid (order {order_id})")
        return newly_paid

    def _mark_failed(self, booking: Booking, order_id: str) -> None:
        if booking.is_paid:
            # A later failure event never downgrades a settled payment
            return
        with self.transaction():
            booking.payment_status = PaymentStatus.FAILED.value
            booking.payment_order_id = order_id
            self.db.flush()
        self.logger.info(f"[PAYMENTS] Booking {booking.id} marked failed (order {order_id})")

    @BaseService.measure_operation("create_order")
    def create_order(
        self,
        booking_id: str,
        customer: User,
        amount: Optional[int] = None,
        currency: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Create a PaymentIntent for a booking the customer owns.

        Raises:
            NotFoundException: Unknown booking or not owned by ``customer``
            ValidationException: Booking already paid or nothing to charge
            PaymentException: Gateway error
        """
        booking = self._get_customer_booking(booking_id, customer)
        if booking.is_paid:
            raise ValidationException("Booking is already paid")

        amount = amount if amount is not None else amount_in_minor_units(booking.total_cost)
        if amount <= 0:
            raise ValidationException("Payment amount must be greater than zero")
        currency = (currency or settings.stripe_currency).lower()
        receipt = receipt_for(booking.id)

        try:
            intent = stripe.PaymentIntent.create(
                amount=amount,
                currency=currency,
                description=f"{booking.service_type} booking {booking.id}",
                metadata={"booking_id": booking.id, "receipt": receipt},
                automatic_payment_methods={"enabled": True},
            )
        except stripe.StripeError as e:
            self.logger.error(f"[PAYMENTS] PaymentIntent create failed for {booking.id}: {e}")
            raise PaymentException("Failed to create payment order")

        with self.transaction():
            booking.payment_order_id = intent["id"]
            self.db.flush()

        self.log_operation("create_order", booking_id=booking.id, order_id=intent["id"])
        return {
            "id": intent["id"],
            "amount": amount,
            "currency": currency,
            "receipt": receipt,
            "client_secret": intent.get("client_secret"),
            "status": intent.get("status"),
        }

    @BaseService.measure_operation("verify_payment")
    def verify_payment(self, booking_id: str, order_id: str, customer: User) -> Tuple[Booking, bool]:
        """
        Confirm a payment by reading the intent back from the gateway.

        Returns:
            The booking and whether this call moved it to paid

        Raises:
            NotFoundException: Unknown booking or not owned by ``customer``
            ValidationException: Intent not succeeded or not for this booking
            PaymentException: Gateway error
        """
        booking = self._get_customer_booking(booking_id, customer)

        try:
            intent = stripe.PaymentIntent.retrieve(order_id)
        except stripe.InvalidRequestError as e:
            self.logger.warning(f"[PAYMENTS] Unknown intent {order_id}: {e}")
            raise ValidationException("Payment verification failed")
        except stripe.StripeError as e:
            self.logger.error(f"[PAYMENTS] PaymentIntent retrieve failed for {order_id}: {e}")
            raise PaymentException("Failed to verify payment")

        metadata = intent.get("metadata") or {}
        if metadata.get("booking_id") != booking.id:
            self.logger.warning(f"[PAYMENTS] Intent {order_id} does not belong to {booking.id}")
            raise ValidationException("Payment verification failed")

        status = intent.get("status")
        if status == INTENT_SUCCEEDED:
            newly_paid = self._mark_paid(booking, order_id, intent.get("latest_charge"))
            return booking, newly_paid

        if status == INTENT_CANCELED:
            self._mark_failed(booking, order_id)
        self.logger.warning(f"[PAYMENTS] Intent {order_id} not settled (status={status})")
        raise ValidationException("Payment verification failed", details={"status": status})

    @BaseService.measure_operation("handle_webhook")
    def handle_webhook(self, payload: bytes, signature: Optional[str]) -> WebhookResult:
        """
        Verify and apply a Stripe webhook.

        Raises:
            ValidationException: Missing or invalid signature, or malformed payload
        """
        secret = settings.stripe_webhook_secret.get_secret_value()
        if not signature or not secret:
            raise ValidationException("Invalid webhook signature")

        try:
            event = stripe.Webhook.construct_event(payload, signature, secret)
        except stripe.SignatureVerificationError as e:
            self.logger.warning(f"[PAYMENTS] Invalid webhook signature: {e}")
            raise ValidationException("Invalid webhook signature")
        except ValueError as e:
            self.logger.warning(f"[PAYMENTS] Invalid webhook payload: {e}")
            raise ValidationException("Invalid webhook payload")

        event_type = event["type"]
        if event_type not in (EVENT_INTENT_SUCCEEDED, EVENT_INTENT_FAILED):
            self.logger.debug(f"[PAYMENTS] Ignoring webhook event {event_type}")
            return WebhookResult(event_type=event_type)

        intent = event["data"]["object"]
        booking = self._booking_for_intent(intent)
        if booking is None:
            self.logger.warning(f"[PAYMENTS] No booking for intent {intent.get('id')}")
            return WebhookResult(event_type=event_type)

        if event_type == EVENT_INTENT_SUCCEEDED:
            newly_paid = self._mark_paid(booking, intent["id"], intent.get("latest_charge"))
            return WebhookResult(event_type=event_type, booking=booking, newly_paid=newly_paid)

        self._mark_failed(booking, intent["id"])
        return WebhookResult(event_type=event_type, booking=booking)

    def _booking_for_intent(self, intent: Dict[str, Any]) -> Optional[Booking]:
        metadata = intent.get("metadata") or {}
        booking_id = metadata.get("booking_id")
        if booking_id:
            booking = self.booking_repository.get_by_id(booking_id, load_relationships=False)
            if booking:
                return booking
        return self.booking_repository.get_by_payment_order_id(intent.get("id", ""))
