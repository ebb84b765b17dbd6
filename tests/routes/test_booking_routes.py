# tests/routes/test_booking_routes.py
"""
Tests for booking routes.

Covers multipart creation with attachments, listing per role, the
provider status machine, customer cancel/reschedule/rate and the
notifications each action publishes.
"""

from datetime import timedelta
from pathlib import Path

from fastapi.testclient import TestClient
import pytest

from servicehub.core.config import settings
from servicehub.core.enums import BookingStatus
from servicehub.core.timezone_utils import utc_now
from servicehub.models.booking import Booking
from servicehub.models.user import User
from tests.conftest import make_booking


def _future_date(days: int = 3) -> str:
    return (utc_now() + timedelta(days=days)).date().isoformat()


def _booking_form(provider: User, **overrides) -> dict:
    form = {
        "provider_id": provider.id,
        "service_type": "Plumbing",
        "description": "Leaking tap in the bathroom",
        "scheduled_date": _future_date(),
        "scheduled_time": "10:30",
        "estimated_hours": "2",
        "address": "12 Elm Street",
        "total_cost": "50.00",
    }
    form.update(overrides)
    return form


def _published_rooms(mock_publish) -> list:
    return [call.args[0] for call in mock_publish.call_args_list]


class TestCreateBooking:
    def test_create_booking(
        self, client: TestClient, test_provider: User, test_customer: User, auth_headers_customer, mock_publish
    ):
        response = client.post(
            "/api/v1/bookings", data=_booking_form(test_provider), headers=auth_headers_customer
        )

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Booking created successfully"
        booking = body["booking"]
        assert booking["status"] == "pending"
        assert booking["payment_status"] == "pending"
        assert booking["customer_id"] == test_customer.id
        assert booking["provider_id"] == test_provider.id
        assert booking["scheduled_time"] == "10:30"
        assert booking["total_cost"] == 50.0
        assert booking["attachments"] == []

        assert _published_rooms(mock_publish) == [f"user:{test_provider.id}"]
        event = mock_publish.call_args.args[1]
        assert event["type"] == "notification"
        assert event["payload"]["title"] == "New Service Request"

    def test_create_booking_with_attachments(
        self, client: TestClient, test_provider: User, auth_headers_customer
    ):
        files = [
            ("attachments", ("leak photo.png", b"\x89PNG fake", "image/png")),
            ("attachments", ("clip.mp4", b"fake video", "video/mp4")),
        ]

        response = client.post(
            "/api/v1/bookings",
            data=_booking_form(test_provider),
            files=files,
            headers=auth_headers_customer,
        )

        assert response.status_code == 201
        attachments = response.json()["booking"]["attachments"]
        assert [a["filename"] for a in attachments] == ["leak photo.png", "clip.mp4"]
        assert [a["mimetype"] for a in attachments] == ["image/png", "video/mp4"]
        for attachment in attachments:
            assert attachment["url"].startswith("/uploads/")
            stored = Path(settings.uploads_dir) / attachment["url"].rsplit("/", 1)[1]
            assert stored.exists()

    def test_rejects_oversized_attachment(
        self, client: TestClient, db, test_provider: User, auth_headers_customer, monkeypatch
    ):
        monkeypatch.setattr(settings, "upload_max_bytes", 16)
        files = [("attachments", ("big.png", b"x" * 64, "image/png"))]

        response = client.post(
            "/api/v1/bookings",
            data=_booking_form(test_provider),
            files=files,
            headers=auth_headers_customer,
        )

        assert response.status_code == 400
        assert "big.png" in response.json()["detail"]
        assert db.query(Booking).count() == 0

    def test_rejects_non_media_attachment(
        self, client: TestClient, db, test_provider: User, auth_headers_customer
    ):
        files = [("attachments", ("notes.pdf", b"%PDF", "application/pdf"))]

        response = client.post(
            "/api/v1/bookings",
            data=_booking_form(test_provider),
            files=files,
            headers=auth_headers_customer,
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid file type! Only images and videos are allowed."
        assert db.query(Booking).count() == 0

    def test_past_schedule_rejected(self, client: TestClient, db, test_provider: User, auth_headers_customer):
        form = _booking_form(test_provider, scheduled_date=_future_date(days=-2))

        response = client.post("/api/v1/bookings", data=form, headers=auth_headers_customer)

        assert response.status_code == 400
        assert response.json()["detail"] == "Cannot schedule a booking in the past"
        assert db.query(Booking).count() == 0

    def test_past_schedule_removes_stored_files(
        self, client: TestClient, test_provider: User, auth_headers_customer
    ):
        uploads = Path(settings.uploads_dir)
        before = set(uploads.iterdir()) if uploads.exists() else set()
        form = _booking_form(test_provider, scheduled_date=_future_date(days=-2))

        response = client.post(
            "/api/v1/bookings",
            data=form,
            files=[("attachments", ("a.jpg", b"jpeg", "image/jpeg"))],
            headers=auth_headers_customer,
        )

        assert response.status_code == 400
        assert set(uploads.iterdir()) == before

    @pytest.mark.parametrize(
        "field,value",
        [("scheduled_time", "25:00"), ("service_type", "Astrology"), ("estimated_hours", "0")],
    )
    def test_invalid_fields(
        self, client: TestClient, test_provider: User, auth_headers_customer, field, value
    ):
        form = _booking_form(test_provider, **{field: value})

        response = client.post("/api/v1/bookings", data=form, headers=auth_headers_customer)

        assert response.status_code == 400
        assert response.json()["detail"].startswith(field)

    def test_missing_field(self, client: TestClient, test_provider: User, auth_headers_customer):
        form = _booking_form(test_provider)
        del form["address"]

        response = client.post("/api/v1/bookings", data=form, headers=auth_headers_customer)

        assert response.status_code == 400
        assert response.json()["detail"].startswith("address")

    def test_unknown_provider(self, client: TestClient, test_customer: User, auth_headers_customer):
        form = _booking_form(test_customer)

        response = client.post("/api/v1/bookings", data=form, headers=auth_headers_customer)

        assert response.status_code == 404
        assert response.json()["detail"] == "Provider not found"

    def test_provider_cannot_book(self, client: TestClient, test_provider: User, auth_headers_provider):
        response = client.post(
            "/api/v1/bookings", data=_booking_form(test_provider), headers=auth_headers_provider
        )

        assert response.status_code == 403


class TestListBookings:
    def test_customer_list_has_provider_name(
        self, client: TestClient, test_booking: Booking, test_provider: User, auth_headers_customer
    ):
        response = client.get("/api/v1/bookings/customer", headers=auth_headers_customer)

        assert response.status_code == 200
        bookings = response.json()
        assert [b["id"] for b in bookings] == [test_booking.id]
        assert bookings[0]["provider_name"] == test_provider.name
        assert bookings[0]["customer_name"] is None

    def test_provider_list_has_customer_name(
        self, client: TestClient, test_booking: Booking, test_customer: User, auth_headers_provider
    ):
        response = client.get("/api/v1/bookings/provider", headers=auth_headers_provider)

        assert response.status_code == 200
        bookings = response.json()
        assert bookings[0]["customer_name"] == test_customer.name

    def test_other_provider_sees_nothing(self, client: TestClient, test_booking: Booking, auth_headers_provider_2):
        response = client.get("/api/v1/bookings/provider", headers=auth_headers_provider_2)

        assert response.json() == []

    def test_role_guard(self, client: TestClient, auth_headers_provider):
        response = client.get("/api/v1/bookings/customer", headers=auth_headers_provider)

        assert response.status_code == 403

    def test_get_booking_by_participant(self, client: TestClient, test_booking: Booking, auth_headers_provider):
        response = client.get(f"/api/v1/bookings/{test_booking.id}", headers=auth_headers_provider)

        assert response.status_code == 200
        body = response.json()
        assert body["provider_name"] == "Test Provider"
        assert body["customer_name"] == "Test Customer"

    def test_get_booking_by_stranger(self, client: TestClient, test_booking: Booking, auth_headers_provider_2):
        response = client.get(f"/api/v1/bookings/{test_booking.id}", headers=auth_headers_provider_2)

        assert response.status_code == 403

    def test_get_unknown_booking(self, client: TestClient, auth_headers_customer):
        response = client.get("/api/v1/bookings/01HZZZZZZZZZZZZZZZZZZZZZZZ", headers=auth_headers_customer)

        assert response.status_code == 404


class TestStatusUpdates:
    @pytest.mark.parametrize(
        "start,target",
        [
            ("pending", "confirmed"),
            ("pending", "cancelled"),
            ("confirmed", "in-progress"),
            ("confirmed", "completed"),
            ("in-progress", "completed"),
        ],
    )
    def test_allowed_transitions(
        self, client: TestClient, db, test_customer, test_provider, auth_headers_provider, mock_publish, start, target
    ):
        booking = make_booking(db, test_customer, test_provider, status=start)

        response = client.put(
            f"/api/v1/bookings/{booking.id}/status",
            json={"status": target},
            headers=auth_headers_provider,
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Booking status updated successfully"
        assert response.json()["booking"]["status"] == target
        assert _published_rooms(mock_publish) == [f"user:{test_customer.id}"]

    @pytest.mark.parametrize(
        "start,target",
        [("pending", "completed"), ("completed", "cancelled"), ("cancelled", "confirmed")],
    )
    def test_rejected_transitions(
        self, client: TestClient, db, test_customer, test_provider, auth_headers_provider, mock_publish, start, target
    ):
        booking = make_booking(db, test_customer, test_provider, status=start)

        response = client.put(
            f"/api/v1/bookings/{booking.id}/status",
            json={"status": target},
            headers=auth_headers_provider,
        )

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_STATUS_TRANSITION"
        db.refresh(booking)
        assert booking.status == start
        mock_publish.assert_not_called()

    def test_unknown_status_value(self, client: TestClient, test_booking: Booking, auth_headers_provider):
        response = client.put(
            f"/api/v1/bookings/{test_booking.id}/status",
            json={"status": "pending"},
            headers=auth_headers_provider,
        )

        assert response.status_code == 400

    def test_other_provider_gets_404(self, client: TestClient, test_booking: Booking, auth_headers_provider_2):
        response = client.put(
            f"/api/v1/bookings/{test_booking.id}/status",
            json={"status": "confirmed"},
            headers=auth_headers_provider_2,
        )

        assert response.status_code == 404


class TestCustomerActions:
    def test_cancel_pending(
        self, client: TestClient, test_booking: Booking, test_provider: User, auth_headers_customer, mock_publish
    ):
        response = client.put(f"/api/v1/bookings/{test_booking.id}/cancel", headers=auth_headers_customer)

        assert response.status_code == 200
        assert response.json()["message"] == "Booking cancelled successfully"
        assert response.json()["booking"]["status"] == "cancelled"
        assert _published_rooms(mock_publish) == [f"user:{test_provider.id}"]

    def test_cancel_confirmed_rejected(
        self, client: TestClient, db, test_customer, test_provider, auth_headers_customer
    ):
        booking = make_booking(db, test_customer, test_provider, status=BookingStatus.CONFIRMED.value)

        response = client.put(f"/api/v1/bookings/{booking.id}/cancel", headers=auth_headers_customer)

        assert response.status_code == 400
        assert response.json()["detail"] == "Only pending bookings can be cancelled"

    def test_cancel_by_provider_token_forbidden(self, client: TestClient, test_booking: Booking, auth_headers_provider):
        response = client.put(f"/api/v1/bookings/{test_booking.id}/cancel", headers=auth_headers_provider)

        assert response.status_code == 403

    def test_reschedule_resets_reminders(
        self, client: TestClient, db, test_booking: Booking, test_provider: User, auth_headers_customer, mock_publish
    ):
        test_booking.reminder_24h_sent = True
        test_booking.reminder_1h_sent = True
        db.commit()
        new_date = _future_date(days=5)

        response = client.put(
            f"/api/v1/bookings/{test_booking.id}/reschedule",
            json={"scheduled_date": new_date, "scheduled_time": "14:15"},
            headers=auth_headers_customer,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Booking rescheduled successfully"
        assert body["booking"]["scheduled_time"] == "14:15"
        assert body["booking"]["scheduled_date"].startswith(new_date)
        db.refresh(test_booking)
        assert test_booking.reminder_24h_sent is False
        assert test_booking.reminder_1h_sent is False
        assert _published_rooms(mock_publish) == [f"user:{test_provider.id}"]

    def test_reschedule_into_past(self, client: TestClient, test_booking: Booking, auth_headers_customer):
        response = client.put(
            f"/api/v1/bookings/{test_booking.id}/reschedule",
            json={"scheduled_date": _future_date(days=-1), "scheduled_time": "09:00"},
            headers=auth_headers_customer,
        )

        assert response.status_code == 400

    def test_reschedule_completed_rejected(
        self, client: TestClient, db, test_customer, test_provider, auth_headers_customer
    ):
        booking = make_booking(db, test_customer, test_provider, status=BookingStatus.COMPLETED.value)

        response = client.put(
            f"/api/v1/bookings/{booking.id}/reschedule",
            json={"scheduled_date": _future_date(), "scheduled_time": "09:00"},
            headers=auth_headers_customer,
        )

        assert response.status_code == 400

    def test_rate_completed_updates_provider_average(
        self, client: TestClient, db, test_customer, test_provider, auth_headers_customer
    ):
        first = make_booking(db, test_customer, test_provider, status=BookingStatus.COMPLETED.value)
        second = make_booking(db, test_customer, test_provider, status=BookingStatus.COMPLETED.value)

        r1 = client.post(
            f"/api/v1/bookings/{first.id}/rate",
            json={"rating": 5, "comment": " Great work "},
            headers=auth_headers_customer,
        )
        r2 = client.post(
            f"/api/v1/bookings/{second.id}/rate", json={"rating": 4}, headers=auth_headers_customer
        )

        assert r1.status_code == 200
        assert r1.json()["message"] == "Rating submitted successfully"
        assert r1.json()["booking"]["comment"] == "Great work"
        assert r2.status_code == 200
        db.refresh(test_provider)
        assert float(test_provider.rating) == 4.5

    def test_rate_twice_rejected(self, client: TestClient, db, test_customer, test_provider, auth_headers_customer):
        booking = make_booking(db, test_customer, test_provider, status=BookingStatus.COMPLETED.value)
        client.post(f"/api/v1/bookings/{booking.id}/rate", json={"rating": 3}, headers=auth_headers_customer)

        response = client.post(
            f"/api/v1/bookings/{booking.id}/rate", json={"rating": 5}, headers=auth_headers_customer
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "This booking has already been rated"

    def test_rate_pending_rejected(self, client: TestClient, test_booking: Booking, auth_headers_customer):
        response = client.post(
            f"/api/v1/bookings/{test_booking.id}/rate", json={"rating": 5}, headers=auth_headers_customer
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Only completed bookings can be rated"

    @pytest.mark.parametrize("rating", [0, 6])
    def test_rating_out_of_range(self, client: TestClient, test_booking: Booking, auth_headers_customer, rating):
        response = client.post(
            f"/api/v1/bookings/{test_booking.id}/rate", json={"rating": rating}, headers=auth_headers_customer
        )

        assert response.status_code == 400
