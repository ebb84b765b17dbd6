# tests/services/test_notification_service.py
"""
Tests for notification payloads and delivery.
"""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch

import pytest

from servicehub.core.enums import ReminderWindow
from servicehub.models.booking import Booking
from servicehub.services.notification_service import NotificationService


@pytest.fixture
def service():
    return NotificationService()


@pytest.fixture
def booking():
    return Booking(
        id="01J0000000000000000000000B",
        customer_id="cust",
        provider_id="prov",
        service_type="Cleaning",
        scheduled_date=datetime(2030, 5, 17, 9, 30, tzinfo=timezone.utc),
        scheduled_time="09:30",
        status="confirmed",
    )


def test_payload_shape(service, booking):
    notification = service.booking_requested(booking, "Alice")

    assert set(notification) == {"title", "message", "timestamp", "data"}
    assert notification["title"] == "New Service Request"
    assert "Alice" in notification["message"]
    assert notification["data"] == {"booking_id": booking.id, "kind": "booking_requested"}


def test_status_titles(service, booking):
    assert service.booking_status_changed(booking, "Bob")["title"] == "Booking Confirmed!"
    booking.status = "completed"
    assert service.booking_status_changed(booking, "Bob")["title"] == "Service Completed!"


def test_cancel_and_reschedule_mention_date(service, booking):
    assert "2030-05-17" in service.booking_cancelled(booking)["message"]
    rescheduled = service.booking_rescheduled(booking, "Alice")["message"]
    assert "2030-05-17" in rescheduled
    assert "09:30" in rescheduled


@pytest.mark.parametrize(
    "window,title",
    [
        (ReminderWindow.TWENTY_FOUR_HOURS, "Upcoming Service Reminder"),
        (ReminderWindow.ONE_HOUR, "Service Reminder: Starting Soon"),
    ],
)
def test_reminder_titles(service, booking, window, title):
    notification = service.reminder(booking, window)

    assert notification["title"] == title
    assert notification["data"]["window"] == window.value


@pytest.mark.asyncio
async def test_send_publishes_to_user_room(service, booking, mock_publish):
    delivered = await service.send("cust", service.payment_received(booking))

    assert delivered is True
    room, event = mock_publish.call_args.args
    assert room == "user:cust"
    assert event["type"] == "notification"
    assert event["payload"]["title"] == "Payment Received"


@pytest.mark.asyncio
async def test_announce_goes_to_broadcast_room(service, mock_publish):
    notification = await service.announce("Hello", "World")

    room, event = mock_publish.call_args.args
    assert room == "broadcast:all"
    assert event["payload"] == notification


def test_send_sync_uses_redis_publish(service, booking, mock_publish_sync):
    assert service.send_sync("cust", service.chat_message(booking.id, "Bob")) is True

    room, event = mock_publish_sync.call_args.args
    assert room == "user:cust"
    assert event["payload"]["title"] == "New Chat Message"
