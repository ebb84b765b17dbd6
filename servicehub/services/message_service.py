# servicehub/services/message_service.py
"""
Message Service for booking chat.

Only the two participants of a booking may read or write its chat. The
receiver of a message is always the other participant. Used by both the
REST chat routes and the WebSocket gateway.
"""

import logging
import math
from typing import Any, Dict, List, Tuple

from sqlalchemy.orm import Session

from ..core.constants import DEFAULT_CHAT_PAGE_SIZE
from ..core.exceptions import ForbiddenException, NotFoundException
from ..models.booking import Booking
from ..models.message import Message
from ..models.user import User
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)


class MessageService(BaseService):
    """Service for chat messages attached to bookings."""

    def __init__(self, db: Session) -> None:
        super().__init__(db)
        self.repository = RepositoryFactory.create_message_repository(db)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)

    def get_participant_booking(self, booking_id: str, user_id: str) -> Booking:
        """
        Raises:
            NotFoundException: If the booking does not exist
            ForbiddenException: If ``user_id`` is not a participant
        """
        booking = self.booking_repository.get_by_id(booking_id, load_relationships=False)
        if not booking:
            raise NotFoundException("Booking not found")
        if not booking.involves(user_id):
            raise ForbiddenException("You are not a participant in this booking")
        return booking

    @BaseService.measure_operation("get_messages")
    def get_messages(
        self,
        booking_id: str,
        user: User,
        page: int = 1,
        limit: int = DEFAULT_CHAT_PAGE_SIZE,
    ) -> Dict[str, Any]:
        """
        One page of the booking chat in ascending order. Messages addressed
        to ``user`` in this booking are marked read.
        """
        self.get_participant_booking(booking_id, user.id)

        with self.transaction():
            messages = self.repository.list_for_booking(
                booking_id, skip=(page - 1) * limit, limit=limit
            )
            total = self.repository.count_for_booking(booking_id)
            marked = self.repository.mark_read(booking_id, user.id)

        if marked:
            self.logger.debug(f"Marked {marked} message(s) read for {user.id} in {booking_id}")
        return {
            "messages": messages,
            "total": total,
            "total_pages": math.ceil(total / limit) if total else 0,
            "current_page": page,
        }

    @BaseService.measure_operation("send_message")
    def send_message(self, booking_id: str, sender: User, text: str) -> Tuple[Message, Booking]:
        """
        Persist a message from ``sender`` to the other participant.

        Returns:
            The message (sender loaded) and its booking
        """
        booking = self.get_participant_booking(booking_id, sender.id)

        with self.transaction():
            message: Message = self.repository.create(
                booking_id=booking.id,
                sender_id=sender.id,
                receiver_id=booking.counterpart_of(sender.id),
                text=text,
            )
            message.sender = sender

        self.log_operation("send_message", booking_id=booking.id, sender_id=sender.id)
        return message, booking

    @BaseService.measure_operation("list_conversations")
    def list_conversations(self, user: User) -> List[Dict[str, Any]]:
        """
        One entry per booking of ``user``: the other participant, the latest
        message, the caller's unread count and the booking status.
        Customers see the provider's service type as well.
        """
        bookings = self.booking_repository.list_for_conversations(
            user.id, as_customer=user.is_customer
        )
        booking_ids = [booking.id for booking in bookings]
        latest = self.repository.latest_for_bookings(booking_ids)
        unread = self.repository.unread_by_booking(user.id, booking_ids)

        conversations: List[Dict[str, Any]] = []
        for booking in bookings:
            other = booking.provider if user.is_customer else booking.customer
            other_user: Dict[str, Any] = {
                "id": other.id,
                "name": other.name,
                "profile_image": other.profile_image,
            }
            if user.is_customer:
                other_user["service_type"] = other.service_type
            conversations.append(
                {
                    "booking_id": booking.id,
                    "other_user": other_user,
                    "last_message": latest.get(booking.id),
                    "unread_count": unread.get(booking.id, 0),
                    "booking_status": booking.status,
                }
            )
        return conversations

    @BaseService.measure_operation("unread_count")
    def unread_count(self, user: User) -> int:
        return self.repository.count_unread(user.id)


def serialize_message(message: Message) -> Dict[str, Any]:
    """Wire form of a chat message for realtime events."""
    sender = message.sender
    return {
        "id": message.id,
        "booking_id": message.booking_id,
        "sender_id": message.sender_id,
        "receiver_id": message.receiver_id,
        "sender_name": sender.name if sender is not None else None,
        "text": message.text,
        "is_read": bool(message.is_read),
        "created_at": message.created_at.isoformat() if message.created_at else None,
    }
