# servicehub/services/notification_service.py
"""
Notification Service for the ServiceHub Platform

Builds the user-facing notification payloads for booking, chat, payment
and reminder events, and delivers them to user rooms through the realtime
publisher. Every payload has the same shape:

    {"title": str, "message": str, "timestamp": iso8601, "data": {...}}

Delivery is fire-and-forget. A failed publish is logged by the publisher
and reported as False; it never fails the operation that triggered it.
"""

from datetime import datetime, timezone
import logging
from typing import Any, Dict, Optional

from ..core.enums import BookingStatus, ReminderWindow
from ..core.timezone_utils import as_utc
from ..models.booking import Booking
from .realtime import publisher

logger = logging.getLogger(__name__)

STATUS_TITLES: Dict[str, str] = {
    BookingStatus.CONFIRMED.value: "Booking Confirmed!",
    BookingStatus.IN_PROGRESS.value: "Service In Progress",
    BookingStatus.COMPLETED.value: "Service Completed!",
    BookingStatus.CANCELLED.value: "Booking Cancelled by Provider",
}

REMINDER_TITLES: Dict[ReminderWindow, str] = {
    ReminderWindow.TWENTY_FOUR_HOURS: "Upcoming Service Reminder",
    ReminderWindow.ONE_HOUR: "Service Reminder: Starting Soon",
}


def _format_date(value: Optional[datetime]) -> str:
    value = as_utc(value)
    return value.strftime("%Y-%m-%d") if value else ""


class NotificationService:
    """Notification payload builders plus room delivery."""

    def __init__(self) -> None:
        self.logger = logging.getLogger(self.__class__.__name__)

    # ==========================================
    # Payload builders
    # ==========================================

    @staticmethod
    def build(title: str, message: str, data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return {
            "title": title,
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "data": data or {},
        }

    def booking_requested(self, booking: Booking, customer_name: str) -> Dict[str, Any]:
        return self.build(
            "New Service Request",
            f"You have a new booking request from {customer_name} for {booking.service_type}.",
            {"booking_id": booking.id, "kind": "booking_requested"},
        )

    def booking_cancelled(self, booking: Booking) -> Dict[str, Any]:
        return self.build(
            "Booking Cancelled",
            f"Your booking for {booking.service_type} on "
            f"{_format_date(booking.scheduled_date)} has been cancelled by the customer.",
            {"booking_id": booking.id, "kind": "booking_cancelled"},
        )

    def booking_status_changed(self, booking: Booking, provider_name: str) -> Dict[str, Any]:
        status = booking.status
        messages = {
            BookingStatus.CONFIRMED.value: f"Your service with {provider_name} has been confirmed.",
            BookingStatus.IN_PROGRESS.value: f"{provider_name} has started your service.",
            BookingStatus.COMPLETED.value: (
                "Your service is complete. Please make the payment and consider leaving a rating."
            ),
            BookingStatus.CANCELLED.value: (
                f"Your booking with {provider_name} has been cancelled."
            ),
        }
        return self.build(
            STATUS_TITLES.get(status, "Booking Updated"),
            messages.get(status, f"Your booking is now {status}."),
            {"booking_id": booking.id, "status": status, "kind": "booking_status"},
        )

    def booking_rescheduled(self, booking: Booking, customer_name: str) -> Dict[str, Any]:
        return self.build(
            "Booking Rescheduled",
            f"{customer_name} rescheduled the {booking.service_type} service to "
            f"{_format_date(booking.scheduled_date)} at {booking.scheduled_time}.",
            {"booking_id": booking.id, "kind": "booking_rescheduled"},
        )

    def chat_message(self, booking_id: str, sender_name: str) -> Dict[str, Any]:
        return self.build(
            "New Chat Message",
            f"You have a new message from {sender_name}.",
            {"booking_id": booking_id, "kind": "chat_message"},
        )

    def payment_received(self, booking: Booking) -> Dict[str, Any]:
        return self.build(
            "Payment Received",
            f"Your payment for the {booking.service_type} service was received.",
            {"booking_id": booking.id, "kind": "payment_received"},
        )

    def reminder(self, booking: Booking, window: ReminderWindow) -> Dict[str, Any]:
        if window == ReminderWindow.TWENTY_FOUR_HOURS:
            message = f"Your {booking.service_type} service is scheduled for tomorrow."
        else:
            message = (
                f"Your {booking.service_type} service is scheduled to start in about an hour."
            )
        return self.build(
            REMINDER_TITLES[window],
            message,
            {"booking_id": booking.id, "window": window.value, "kind": "reminder"},
        )

    def announcement(self, title: str, message: str) -> Dict[str, Any]:
        return self.build(title, message, {"kind": "announcement"})

    # ==========================================
    # Delivery
    # ==========================================

    async def send(self, user_id: str, notification: Dict[str, Any]) -> bool:
        """Deliver to a user's room from the API process."""
        self.logger.info(f"Sending notification '{notification['title']}' to user {user_id}")
        return await publisher.notify_user(user_id, notification)

    def send_sync(self, user_id: str, notification: Dict[str, Any]) -> bool:
        """Deliver from a worker process (no event loop)."""
        self.logger.info(f"Sending notification '{notification['title']}' to user {user_id}")
        return publisher.notify_user_sync(user_id, notification)

    async def announce(self, title: str, message: str) -> Dict[str, Any]:
        """Broadcast an announcement to every connected client."""
        notification = self.announcement(title, message)
        self.logger.info(f"Broadcasting announcement '{title}'")
        await publisher.broadcast_all(notification)
        return notification
