# servicehub/models/message.py
"""
Message model for the chat system.

Represents messages exchanged between a customer and a provider
about a specific booking.
"""

from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import relationship

from ..core.ulid_helper import generate_ulid
from ..database import Base


class Message(Base):
    """
    Message model for booking-related chat.

    Messages are tied to bookings and enable communication
    between the customer and the provider.
    """

    __tablename__ = "messages"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    booking_id = Column(String(26), ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False)
    sender_id = Column(String(26), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    receiver_id = Column(String(26), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    text = Column(Text, nullable=False)
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    booking = relationship("Booking", back_populates="messages")
    sender = relationship("User", foreign_keys=[sender_id])
    receiver = relationship("User", foreign_keys=[receiver_id])

    __table_args__ = (
        Index("ix_messages_booking_created", "booking_id", "created_at"),
        Index("ix_messages_receiver_unread", "receiver_id", "is_read"),
    )

    def __repr__(self) -> str:
        return f"<Message {self.id}: booking={self.booking_id} from={self.sender_id}>"
