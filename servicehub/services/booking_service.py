# servicehub/services/booking_service.py
"""
Booking Service for the ServiceHub Platform

Owns the booking lifecycle:
- Customers request a booking (with optional image/video attachments),
  cancel it while pending, reschedule it while pending or confirmed, and
  rate it once completed.
- Providers drive the status through the transition table on the model.

The service is DB-only. Routes deliver the resulting notifications after
the transaction commits.
"""

from datetime import date, datetime, time, timezone
from decimal import ROUND_HALF_UP, Decimal
import logging
from typing import List, Optional, Sequence

from sqlalchemy.orm import Session

from ..core.enums import BookingStatus
from ..core.exceptions import (
    ForbiddenException,
    InvalidStatusTransitionException,
    NotFoundException,
    ValidationException,
)
from ..core.timezone_utils import utc_now
from ..models.booking import Booking, BookingAttachment
from ..models.user import User
from ..repositories.factory import RepositoryFactory
from ..schemas.booking import BookingCreate
from .base import BaseService
from .upload_service import IncomingFile, StoredFile, UploadService

logger = logging.getLogger(__name__)

RATING_QUANTUM = Decimal("0.01")


def combine_schedule(scheduled_date: date, scheduled_time: str) -> datetime:
    """Join a date and an "HH:MM" string into an aware UTC datetime."""
    hour, minute = (int(part) for part in scheduled_time.split(":"))
    return datetime.combine(scheduled_date, time(hour, minute), tzinfo=timezone.utc)


class BookingService(BaseService):
    """Service layer for booking operations."""

    def __init__(self, db: Session, upload_service: Optional[UploadService] = None) -> None:
        super().__init__(db)
        self.repository = RepositoryFactory.create_booking_repository(db)
        self.user_repository = RepositoryFactory.create_user_repository(db)
        self.upload_service = upload_service or UploadService()

    # ==========================================
    # Lookups
    # ==========================================

    def _get_booking(self, booking_id: str) -> Booking:
        booking = self.repository.get_by_id(booking_id)
        if not booking:
            raise NotFoundException("Booking not found")
        return booking

    def _get_customer_booking(self, booking_id: str, customer: User) -> Booking:
        """A booking owned by ``customer``; anything else is reported as not found."""
        booking = self.repository.get_by_id(booking_id)
        if not booking or booking.customer_id != customer.id:
            raise NotFoundException("Booking not found")
        return booking

    @staticmethod
    def _ensure_future(scheduled_at: datetime, now: Optional[datetime] = None) -> None:
        if scheduled_at < (now or utc_now()):
            raise ValidationException("Cannot schedule a booking in the past")

    @BaseService.measure_operation("get_booking_for_user")
    def get_booking_for_user(self, booking_id: str, user: User) -> Booking:
        """
        Raises:
            NotFoundException: If the booking does not exist
            ForbiddenException: If ``user`` is not a participant
        """
        booking = self._get_booking(booking_id)
        if not booking.involves(user.id):
            raise ForbiddenException("You do not have access to this booking")
        return booking

    @BaseService.measure_operation("list_customer_bookings")
    def list_customer_bookings(self, customer: User) -> List[Booking]:
        return self.repository.list_for_customer(customer.id)

    @BaseService.measure_operation("list_provider_bookings")
    def list_provider_bookings(self, provider: User) -> List[Booking]:
        return self.repository.list_for_provider(provider.id)

    # ==========================================
    # Customer actions
    # ==========================================

    @BaseService.measure_operation("create_booking")
    def create_booking(
        self,
        customer: User,
        data: BookingCreate,
        files: Sequence[IncomingFile] = (),
    ) -> Booking:
        """
        Create a pending booking request.

        Attachments are stored first; if anything afterwards fails the
        stored files are deleted before the error propagates.

        Raises:
            ValidationException: Bad attachments or a schedule in the past
            NotFoundException: Unknown or inactive provider
        """
        self.log_operation("create_booking", customer_id=customer.id, provider_id=data.provider_id)

        stored: List[StoredFile] = self.upload_service.save_all(files)
        try:
            provider = self.user_repository.get_active_provider(data.provider_id)
            if not provider:
                raise NotFoundException("Provider not found")

            scheduled_at = combine_schedule(data.scheduled_date, data.scheduled_time)
            self._ensure_future(scheduled_at)

            with self.transaction():
                booking = Booking(
                    customer_id=customer.id,
                    provider_id=provider.id,
                    service_type=data.service_type.value,
                    description=data.description,
                    scheduled_date=scheduled_at,
                    scheduled_time=data.scheduled_time,
                    estimated_hours=data.estimated_hours,
                    address=data.address,
                    total_cost=data.total_cost,
                )
                for item in stored:
                    booking.attachments.append(BookingAttachment(**item.to_attachment()))
                self.db.add(booking)
                self.db.flush()
        except Exception:
            if stored:
                self.upload_service.cleanup(item.path for item in stored)
            raise

        self.logger.info(
            f"Booking {booking.id} requested by {customer.id} with provider {provider.id}"
        )
        return booking

    @BaseService.measure_operation("cancel_booking")
    def cancel_booking(self, booking_id: str, customer: User) -> Booking:
        """
        Customer cancellation, allowed only while pending.

        Raises:
            NotFoundException: Not found or not owned by ``customer``
            ValidationException: Booking is no longer pending
        """
        with self.transaction():
            booking = self._get_customer_booking(booking_id, customer)
            if not booking.is_cancellable_by_customer:
                raise ValidationException("Only pending bookings can be cancelled")
            booking.cancel()
            self.db.flush()

        self.log_operation("cancel_booking", booking_id=booking.id, customer_id=customer.id)
        return booking

    @BaseService.measure_operation("reschedule_booking")
    def reschedule_booking(
        self, booking_id: str, customer: User, scheduled_date: date, scheduled_time: str
    ) -> Booking:
        """
        Move a pending or confirmed booking. Both reminder flags reset so the
        new slot gets its own reminders.

        Raises:
            NotFoundException: Not found or not owned by ``customer``
            ValidationException: Wrong status or a time in the past
        """
        scheduled_at = combine_schedule(scheduled_date, scheduled_time)

        with self.transaction():
            booking = self._get_customer_booking(booking_id, customer)
            if not booking.is_reschedulable:
                raise ValidationException("Only pending or confirmed bookings can be rescheduled")
            self._ensure_future(scheduled_at)

            booking.scheduled_date = scheduled_at
            booking.scheduled_time = scheduled_time
            booking.reminder_24h_sent = False
            booking.reminder_1h_sent = False
            self.db.flush()

        self.log_operation("reschedule_booking", booking_id=booking.id)
        return booking

    @BaseService.measure_operation("rate_booking")
    def rate_booking(
        self, booking_id: str, customer: User, rating: int, comment: Optional[str] = None
    ) -> Booking:
        """
        Rate a completed booking once and refresh the provider's average.

        Raises:
            NotFoundException: Not found or not owned by ``customer``
            ValidationException: Not completed, already rated, or rating out of range
        """
        if not isinstance(rating, int) or not 1 <= rating <= 5:
            raise ValidationException("Rating must be an integer between 1 and 5")

        with self.transaction():
            booking = self._get_customer_booking(booking_id, customer)
            if booking.status != BookingStatus.COMPLETED.value:
                raise ValidationException("Only completed bookings can be rated")
            if booking.rating is not None:
                raise ValidationException("This booking has already been rated")

            booking.rating = rating
            booking.comment = comment
            self.db.flush()

            average = self.repository.average_rating_for_provider(booking.provider_id)
            provider = self.user_repository.get_by_id(booking.provider_id, load_relationships=False)
            if provider is not None and average is not None:
                provider.rating = Decimal(str(average)).quantize(RATING_QUANTUM, ROUND_HALF_UP)
                self.db.flush()

        self.log_operation("rate_booking", booking_id=booking.id, rating=rating)
        return booking

    # ==========================================
    # Provider actions
    # ==========================================

    @BaseService.measure_operation("update_booking_status")
    def update_status(self, booking_id: str, provider: User, new_status: str) -> Booking:
        """
        Move a booking along the provider transition table.

        Raises:
            NotFoundException: Not found or not assigned to ``provider``
            InvalidStatusTransitionException: Transition not allowed
        """
        with self.transaction():
            booking = self.repository.get_by_id(booking_id)
            if not booking or booking.provider_id != provider.id:
                raise NotFoundException("Booking not found")
            if not booking.can_transition_to(new_status):
                raise InvalidStatusTransitionException(booking.status, new_status)
            booking.transition_to(new_status)
            self.db.flush()

        self.log_operation("update_booking_status", booking_id=booking.id, status=new_status)
        return booking
