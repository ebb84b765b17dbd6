# servicehub/repositories/booking_repository.py
"""
Booking Repository for the ServiceHub Platform

Data access for bookings: participant listings with the counterpart's name
eagerly loaded, rating aggregates, earnings sums and the reminder scan.
"""

from datetime import datetime
from decimal import Decimal
import logging
from typing import Iterable, List, Optional, cast

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session, joinedload, selectinload

from ..core.enums import BookingStatus, ReminderWindow
from ..core.exceptions import RepositoryException
from ..models.booking import Booking
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class BookingRepository(BaseRepository[Booking]):
    """Repository for Booking data access."""

    def __init__(self, db: Session):
        super().__init__(db, Booking)
        self.logger = logging.getLogger(__name__)

    def _apply_eager_loading(self, query: Query) -> Query:
        return query.options(
            joinedload(Booking.customer),
            joinedload(Booking.provider),
            selectinload(Booking.attachments),
        )

    # ==========================================
    # Participant listings
    # ==========================================

    def list_for_customer(self, customer_id: str) -> List[Booking]:
        """Customer's bookings, latest scheduled first, with provider loaded."""
        try:
            return cast(
                List[Booking],
                self.db.query(Booking)
                .options(joinedload(Booking.provider), selectinload(Booking.attachments))
                .filter(Booking.customer_id == customer_id)
                .order_by(Booking.scheduled_date.desc())
                .all(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing bookings for customer {customer_id}: {str(e)}")
            raise RepositoryException(f"Failed to list customer bookings: {str(e)}")

    def list_for_provider(self, provider_id: str) -> List[Booking]:
        """Provider's bookings, latest scheduled first, with customer loaded."""
        try:
            return cast(
                List[Booking],
                self.db.query(Booking)
                .options(joinedload(Booking.customer), selectinload(Booking.attachments))
                .filter(Booking.provider_id == provider_id)
                .order_by(Booking.scheduled_date.desc())
                .all(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing bookings for provider {provider_id}: {str(e)}")
            raise RepositoryException(f"Failed to list provider bookings: {str(e)}")

    def list_for_conversations(self, user_id: str, as_customer: bool) -> List[Booking]:
        """The user's bookings with the other participant loaded, most recently updated first."""
        if as_customer:
            owner, counterpart = Booking.customer_id, joinedload(Booking.provider)
        else:
            owner, counterpart = Booking.provider_id, joinedload(Booking.customer)
        try:
            return cast(
                List[Booking],
                self.db.query(Booking)
                .options(counterpart)
                .filter(owner == user_id)
                .order_by(Booking.updated_at.desc(), Booking.id.desc())
                .all(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing conversations for {user_id}: {str(e)}")
            raise RepositoryException(f"Failed to list conversations: {str(e)}")

    def get_by_payment_order_id(self, order_id: str) -> Optional[Booking]:
        return self.find_one_by(payment_order_id=order_id)

    # ==========================================
    # Aggregates
    # ==========================================

    def average_rating_for_provider(self, provider_id: str) -> Optional[float]:
        """Mean rating over the provider's rated bookings, None when nothing is rated."""
        try:
            avg = (
                self.db.query(func.avg(Booking.rating))
                .filter(Booking.provider_id == provider_id, Booking.rating.isnot(None))
                .scalar()
            )
            return float(avg) if avg is not None else None
        except SQLAlchemyError as e:
            self.logger.error(f"Error averaging ratings for provider {provider_id}: {str(e)}")
            raise RepositoryException(f"Failed to compute provider rating: {str(e)}")

    def sum_total_cost(
        self,
        provider_id: str,
        statuses: Iterable[BookingStatus],
        scheduled_from: Optional[datetime] = None,
        scheduled_before: Optional[datetime] = None,
    ) -> Decimal:
        """Sum of ``total_cost`` for the provider's bookings in ``statuses``."""
        try:
            query = self.db.query(func.coalesce(func.sum(Booking.total_cost), 0)).filter(
                Booking.provider_id == provider_id,
                Booking.status.in_([s.value for s in statuses]),
            )
            if scheduled_from is not None:
                query = query.filter(Booking.scheduled_date >= scheduled_from)
            if scheduled_before is not None:
                query = query.filter(Booking.scheduled_date < scheduled_before)
            return Decimal(str(query.scalar() or 0))
        except SQLAlchemyError as e:
            self.logger.error(f"Error summing earnings for provider {provider_id}: {str(e)}")
            raise RepositoryException(f"Failed to compute earnings: {str(e)}")

    # ==========================================
    # Reminder scan
    # ==========================================

    def find_due_for_reminder(
        self, window: ReminderWindow, now: datetime, window_end: datetime
    ) -> List[Booking]:
        """
        Confirmed bookings starting in (now, window_end] whose reminder flag
        for ``window`` is still unset.
        """
        flag = (
            Booking.reminder_24h_sent
            if window == ReminderWindow.TWENTY_FOUR_HOURS
            else Booking.reminder_1h_sent
        )
        try:
            return cast(
                List[Booking],
                self.db.query(Booking)
                .options(joinedload(Booking.provider))
                .filter(
                    Booking.status == BookingStatus.CONFIRMED.value,
                    Booking.scheduled_date > now,
                    Booking.scheduled_date <= window_end,
                    flag.is_(False),
                )
                .order_by(Booking.scheduled_date.asc())
                .all(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error scanning {window.value} reminders: {str(e)}")
            raise RepositoryException(f"Failed to scan reminders: {str(e)}")
