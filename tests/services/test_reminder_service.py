# tests/services/test_reminder_service.py
"""
Tests for the booking reminder scan.
"""

from datetime import timedelta
from unittest.mock import MagicMock

from servicehub.core.enums import BookingStatus
from servicehub.core.timezone_utils import utc_now
from servicehub.services.reminder_service import ReminderService
from tests.conftest import make_booking


def _service(db, delivered: bool = True):
    deliver = MagicMock(return_value=delivered)
    return ReminderService(db, deliver=deliver), deliver


def test_24h_window_only(db, test_customer, test_provider):
    booking = make_booking(
        db, test_customer, test_provider, status=BookingStatus.CONFIRMED.value, hours_ahead=20
    )
    service, deliver = _service(db)

    counts = service.send_due_reminders()

    assert counts == {"24h": 1, "1h": 0}
    user_id, notification = deliver.call_args.args
    assert user_id == test_customer.id
    assert notification["title"] == "Upcoming Service Reminder"
    assert notification["data"]["booking_id"] == booking.id
    db.refresh(booking)
    assert booking.reminder_24h_sent is True
    assert booking.reminder_1h_sent is False


def test_within_an_hour_sends_both(db, test_customer, test_provider):
    booking = make_booking(
        db, test_customer, test_provider, status=BookingStatus.CONFIRMED.value, hours_ahead=0.5
    )
    service, deliver = _service(db)

    counts = service.send_due_reminders()

    assert counts == {"24h": 1, "1h": 1}
    titles = [call.args[1]["title"] for call in deliver.call_args_list]
    assert titles == ["Upcoming Service Reminder", "Service Reminder: Starting Soon"]
    db.refresh(booking)
    assert booking.reminder_24h_sent is True
    assert booking.reminder_1h_sent is True


def test_second_scan_sends_nothing(db, test_customer, test_provider):
    make_booking(db, test_customer, test_provider, status=BookingStatus.CONFIRMED.value, hours_ahead=5)
    service, deliver = _service(db)

    service.send_due_reminders()
    counts = service.send_due_reminders()

    assert counts == {"24h": 0, "1h": 0}
    assert deliver.call_count == 1


def test_ignores_unconfirmed_past_and_distant(db, test_customer, test_provider):
    make_booking(db, test_customer, test_provider, status=BookingStatus.PENDING.value, hours_ahead=2)
    make_booking(db, test_customer, test_provider, status=BookingStatus.CANCELLED.value, hours_ahead=2)
    make_booking(db, test_customer, test_provider, status=BookingStatus.CONFIRMED.value, hours_ahead=-1)
    make_booking(db, test_customer, test_provider, status=BookingStatus.CONFIRMED.value, hours_ahead=30)
    service, deliver = _service(db)

    counts = service.send_due_reminders()

    assert counts == {"24h": 0, "1h": 0}
    deliver.assert_not_called()


def test_failed_delivery_still_marks_sent(db, test_customer, test_provider):
    booking = make_booking(
        db, test_customer, test_provider, status=BookingStatus.CONFIRMED.value, hours_ahead=3
    )
    service, _ = _service(db, delivered=False)

    counts = service.send_due_reminders()

    assert counts["24h"] == 1
    db.refresh(booking)
    assert booking.reminder_24h_sent is True


def test_explicit_now(db, test_customer, test_provider):
    booking = make_booking(
        db, test_customer, test_provider, status=BookingStatus.CONFIRMED.value, hours_ahead=48
    )
    service, _ = _service(db)

    counts = service.send_due_reminders(now=utc_now() + timedelta(hours=47, minutes=30))

    assert counts == {"24h": 1, "1h": 1}
    db.refresh(booking)
    assert booking.reminder_1h_sent is True
