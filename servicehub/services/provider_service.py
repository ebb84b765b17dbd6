# servicehub/services/provider_service.py
"""
Provider Service for the ServiceHub Platform

Provider discovery with filters and paging, weekly availability and the
earnings summary shown on the provider dashboard.
"""

from datetime import datetime, timezone
from decimal import Decimal
import logging
import math
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from ..core.constants import DEFAULT_PROVIDER_PAGE_SIZE
from ..core.enums import BookingStatus, ServiceType
from ..core.exceptions import NotFoundException
from ..core.timezone_utils import utc_now
from ..models.user import User, default_availability
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)

PENDING_EARNING_STATUSES = (
    BookingStatus.PENDING,
    BookingStatus.CONFIRMED,
    BookingStatus.IN_PROGRESS,
)


def _month_bounds(now: datetime) -> Tuple[datetime, datetime]:
    """[first instant of this month, first instant of next month) in UTC."""
    start = datetime(now.year, now.month, 1, tzinfo=timezone.utc)
    if now.month == 12:
        end = datetime(now.year + 1, 1, 1, tzinfo=timezone.utc)
    else:
        end = datetime(now.year, now.month + 1, 1, tzinfo=timezone.utc)
    return start, end


class ProviderService(BaseService):
    """Service for provider discovery, availability and earnings."""

    def __init__(self, db: Session) -> None:
        super().__init__(db)
        self.user_repository = RepositoryFactory.create_user_repository(db)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)

    @staticmethod
    def list_service_types() -> List[str]:
        return [service.value for service in ServiceType]

    @BaseService.measure_operation("list_providers")
    def list_providers(
        self,
        service_type: Optional[str] = None,
        location: Optional[str] = None,
        page: int = 1,
        limit: int = DEFAULT_PROVIDER_PAGE_SIZE,
    ) -> Dict[str, Any]:
        """
        Active providers matching the filters, newest first.

        Returns:
            Dict with providers, total, total_pages and current_page
        """
        providers, total = self.user_repository.search_providers(
            service_type=service_type,
            location=location,
            skip=(page - 1) * limit,
            limit=limit,
        )
        return {
            "providers": providers,
            "total": total,
            "total_pages": math.ceil(total / limit) if total else 0,
            "current_page": page,
        }

    @BaseService.measure_operation("get_provider")
    def get_provider(self, provider_id: str) -> User:
        """
        Raises:
            NotFoundException: If no active provider has this id
        """
        provider = self.user_repository.get_active_provider(provider_id)
        if not provider:
            raise NotFoundException("Provider not found")
        return provider

    @BaseService.measure_operation("update_availability")
    def update_availability(self, provider: User, availability: Dict[str, Dict[str, Any]]) -> Dict[str, Any]:
        """
        Replace the provider's weekday map.

        Days absent from ``availability`` reset to the default window.
        """
        merged = default_availability()
        for day, window in availability.items():
            merged[day] = {
                "available": bool(window["available"]),
                "start_time": window["start_time"],
                "end_time": window["end_time"],
            }

        with self.transaction():
            provider.availability = merged
            self.db.flush()

        self.log_operation("update_availability", user_id=provider.id)
        return merged

    @BaseService.measure_operation("get_earnings")
    def get_earnings(self, provider_id: str, now: Optional[datetime] = None) -> Dict[str, Decimal]:
        """
        Earnings summary.

        total: completed bookings
        this_month: completed bookings scheduled in the current calendar month
        pending: bookings still pending, confirmed or in progress
        """
        now = now or utc_now()
        month_start, month_end = _month_bounds(now)
        completed = (BookingStatus.COMPLETED,)

        return {
            "total": self.booking_repository.sum_total_cost(provider_id, completed),
            "this_month": self.booking_repository.sum_total_cost(
                provider_id, completed, scheduled_from=month_start, scheduled_before=month_end
            ),
            "pending": self.booking_repository.sum_total_cost(
                provider_id, PENDING_EARNING_STATUSES
            ),
        }
