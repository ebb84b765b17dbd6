# servicehub/repositories/message_repository.py
"""
Message Repository for the ServiceHub Platform

Chat history per booking, read tracking, unread counts and the
per-booking summaries behind the conversations list.
"""

import logging
from typing import Dict, List, Sequence, cast

from sqlalchemy import and_, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from ..core.exceptions import RepositoryException
from ..models.message import Message
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class MessageRepository(BaseRepository[Message]):
    """Repository for chat messages."""

    def __init__(self, db: Session):
        super().__init__(db, Message)
        self.logger = logging.getLogger(__name__)

    def list_for_booking(self, booking_id: str, skip: int = 0, limit: int = 50) -> List[Message]:
        """Messages of a booking in ascending creation order, sender loaded."""
        try:
            return cast(
                List[Message],
                self.db.query(Message)
                .options(joinedload(Message.sender))
                .filter(Message.booking_id == booking_id)
                .order_by(Message.created_at.asc(), Message.id.asc())
                .offset(skip)
                .limit(limit)
                .all(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing messages for booking {booking_id}: {str(e)}")
            raise RepositoryException(f"Failed to list messages: {str(e)}")

    def count_for_booking(self, booking_id: str) -> int:
        return self.count(booking_id=booking_id)

    def mark_read(self, booking_id: str, receiver_id: str) -> int:
        """Mark every unread message addressed to ``receiver_id`` in the booking as read."""
        try:
            updated = (
                self.db.query(Message)
                .filter(
                    Message.booking_id == booking_id,
                    Message.receiver_id == receiver_id,
                    Message.is_read.is_(False),
                )
                .update({Message.is_read: True}, synchronize_session="fetch")
            )
            self.db.flush()
            return int(updated or 0)
        except SQLAlchemyError as e:
            self.logger.error(f"Error marking messages read for booking {booking_id}: {str(e)}")
            raise RepositoryException(f"Failed to mark messages read: {str(e)}")

    def count_unread(self, receiver_id: str) -> int:
        return self.count(receiver_id=receiver_id, is_read=False)

    def latest_for_bookings(self, booking_ids: Sequence[str]) -> Dict[str, Message]:
        """Most recent message per booking, keyed by booking id."""
        if not booking_ids:
            return {}
        try:
            latest = (
                self.db.query(
                    Message.booking_id.label("booking_id"),
                    func.max(Message.created_at).label("created_at"),
                )
                .filter(Message.booking_id.in_(booking_ids))
                .group_by(Message.booking_id)
                .subquery()
            )
            rows = (
                self.db.query(Message)
                .join(
                    latest,
                    and_(
                        Message.booking_id == latest.c.booking_id,
                        Message.created_at == latest.c.created_at,
                    ),
                )
                .order_by(Message.id.asc())
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading latest messages: {str(e)}")
            raise RepositoryException(f"Failed to load latest messages: {str(e)}")
        # Same-timestamp ties resolve to the highest (newest) ULID
        return {message.booking_id: message for message in rows}

    def unread_by_booking(self, receiver_id: str, booking_ids: Sequence[str]) -> Dict[str, int]:
        """Unread messages addressed to ``receiver_id``, counted per booking."""
        if not booking_ids:
            return {}
        try:
            rows = (
                self.db.query(Message.booking_id, func.count(Message.id))
                .filter(
                    Message.booking_id.in_(booking_ids),
                    Message.receiver_id == receiver_id,
                    Message.is_read.is_(False),
                )
                .group_by(Message.booking_id)
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error counting unread per booking for {receiver_id}: {str(e)}")
            raise RepositoryException(f"Failed to count unread messages: {str(e)}")
        return {booking_id: int(count) for booking_id, count in rows}
