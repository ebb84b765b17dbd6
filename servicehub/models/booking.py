# servicehub/models/booking.py
"""
Booking model for the ServiceHub platform.

A booking is a scheduled service engagement between a customer and a
provider. It carries its own schedule, cost and payment state, the rating
left by the customer once the job is done, and the pair of reminder flags
used by the reminder scan so each window fires at most once.
"""

from datetime import datetime, timezone
import logging
from typing import Any, Dict, FrozenSet

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from ..core.enums import BookingStatus, PaymentStatus
from ..core.ulid_helper import generate_ulid
from ..database import Base

logger = logging.getLogger(__name__)

# Provider-driven transitions. Completed and cancelled are terminal.
ALLOWED_STATUS_TRANSITIONS: Dict[str, FrozenSet[str]] = {
    BookingStatus.PENDING.value: frozenset(
        {BookingStatus.CONFIRMED.value, BookingStatus.CANCELLED.value}
    ),
    BookingStatus.CONFIRMED.value: frozenset(
        {
            BookingStatus.IN_PROGRESS.value,
            BookingStatus.COMPLETED.value,
            BookingStatus.CANCELLED.value,
        }
    ),
    BookingStatus.IN_PROGRESS.value: frozenset(
        {BookingStatus.COMPLETED.value, BookingStatus.CANCELLED.value}
    ),
    BookingStatus.COMPLETED.value: frozenset(),
    BookingStatus.CANCELLED.value: frozenset(),
}


class Booking(Base):
    """
    Service booking between a customer and a provider.

    Attributes:
        scheduled_date: Start of the service as an aware UTC datetime
        scheduled_time: The requested start time as "HH:MM"
        status: pending, confirmed, in-progress, completed or cancelled
        payment_status: pending, paid or failed
        reminder_24h_sent / reminder_1h_sent: Set once the matching reminder went out
    """

    __tablename__ = "bookings"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    customer_id = Column(String(26), ForeignKey("users.id"), nullable=False, index=True)
    provider_id = Column(String(26), ForeignKey("users.id"), nullable=False, index=True)
    service_type = Column(String(50), nullable=False)
    description = Column(Text, nullable=False)
    scheduled_date = Column(DateTime(timezone=True), nullable=False)
    scheduled_time = Column(String(5), nullable=False)
    estimated_hours = Column(Numeric(5, 2), nullable=False)
    address = Column(String(500), nullable=False)
    total_cost = Column(Numeric(10, 2), nullable=False)

    status = Column(String(20), nullable=False, default=BookingStatus.PENDING.value, index=True)

    payment_status = Column(String(20), nullable=False, default=PaymentStatus.PENDING.value)
    payment_order_id = Column(String(255), nullable=True, index=True)
    payment_id = Column(String(255), nullable=True)

    rating = Column(Integer, nullable=True)
    comment = Column(Text, nullable=True)

    reminder_24h_sent = Column(Boolean, nullable=False, default=False)
    reminder_1h_sent = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    customer = relationship("User", foreign_keys=[customer_id], back_populates="customer_bookings")
    provider = relationship("User", foreign_keys=[provider_id], back_populates="provider_bookings")
    attachments = relationship(
        "BookingAttachment",
        back_populates="booking",
        cascade="all, delete-orphan",
        order_by="BookingAttachment.created_at",
    )
    messages = relationship("Message", back_populates="booking", cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'in-progress', 'completed', 'cancelled')",
            name="ck_bookings_status",
        ),
        CheckConstraint(
            "payment_status IN ('pending', 'paid', 'failed')", name="ck_bookings_payment_status"
        ),
        CheckConstraint("rating IS NULL OR (rating >= 1 AND rating <= 5)", name="ck_bookings_rating"),
        CheckConstraint("estimated_hours > 0", name="ck_bookings_estimated_hours"),
        CheckConstraint("total_cost >= 0", name="ck_bookings_total_cost"),
        Index("ix_bookings_reminder_scan", "status", "scheduled_date"),
    )

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        if not self.status:
            self.status = BookingStatus.PENDING.value
        if not self.payment_status:
            self.payment_status = PaymentStatus.PENDING.value
        if self.reminder_24h_sent is None:
            self.reminder_24h_sent = False
        if self.reminder_1h_sent is None:
            self.reminder_1h_sent = False

    def __repr__(self) -> str:
        return (
            f"<Booking {self.id}: customer={self.customer_id}, "
            f"provider={self.provider_id}, at={self.scheduled_date}, status={self.status}>"
        )

    def can_transition_to(self, new_status: str) -> bool:
        """Check whether the provider may move this booking to ``new_status``."""
        return new_status in ALLOWED_STATUS_TRANSITIONS.get(self.status, frozenset())

    def transition_to(self, new_status: str) -> None:
        """Apply a status change. Callers validate with ``can_transition_to`` first."""
        old_status = self.status
        self.status = new_status
        logger.info(f"Booking {self.id} status {old_status} -> {new_status}")

    def cancel(self) -> None:
        """Cancel this booking."""
        self.transition_to(BookingStatus.CANCELLED.value)

    def involves(self, user_id: str) -> bool:
        """True when ``user_id`` is the customer or the provider."""
        return user_id in (self.customer_id, self.provider_id)

    def counterpart_of(self, user_id: str) -> str:
        """Return the other participant's id."""
        return self.provider_id if user_id == self.customer_id else self.customer_id

    @property
    def is_cancellable_by_customer(self) -> bool:
        return self.status == BookingStatus.PENDING

    @property
    def is_reschedulable(self) -> bool:
        return self.status in (BookingStatus.PENDING, BookingStatus.CONFIRMED)

    @property
    def is_paid(self) -> bool:
        return self.payment_status == PaymentStatus.PAID


class BookingAttachment(Base):
    """File uploaded with a booking request (images and videos only)."""

    __tablename__ = "booking_attachments"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    booking_id = Column(
        String(26), ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True
    )
    url = Column(String(500), nullable=False)
    filename = Column(String(255), nullable=False)
    mimetype = Column(String(100), nullable=False)
    size_bytes = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    booking = relationship("Booking", back_populates="attachments")
