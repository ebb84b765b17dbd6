# servicehub/services/reminder_service.py
"""
Reminder Service for upcoming bookings.

Scans confirmed bookings in two windows ahead of now:
- 24h: now < scheduled_date <= now + 24h, reminder_24h_sent unset
- 1h:  now < scheduled_date <= now + 1h,  reminder_1h_sent unset

The customer is notified and the window's flag is committed right after
each publish, so a booking is reminded at most once per window even if the
scan is interrupted part way.
"""

from datetime import datetime, timedelta
import logging
from typing import Callable, Dict, Optional

from sqlalchemy.orm import Session

from ..core.constants import REMINDER_WINDOW_1H_HOURS, REMINDER_WINDOW_24H_HOURS
from ..core.enums import ReminderWindow
from ..core.timezone_utils import utc_now
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from .base import BaseService
from .notification_service import NotificationService

logger = logging.getLogger(__name__)

WINDOW_HOURS: Dict[ReminderWindow, int] = {
    ReminderWindow.TWENTY_FOUR_HOURS: REMINDER_WINDOW_24H_HOURS,
    ReminderWindow.ONE_HOUR: REMINDER_WINDOW_1H_HOURS,
}

# (user_id, notification) -> delivered
Deliver = Callable[[str, Dict], bool]


class ReminderService(BaseService):
    """Sends the 24-hour and 1-hour booking reminders."""

    def __init__(
        self,
        db: Session,
        notification_service: Optional[NotificationService] = None,
        deliver: Optional[Deliver] = None,
    ) -> None:
        super().__init__(db)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)
        self.notification_service = notification_service or NotificationService()
        self.deliver: Deliver = deliver or self.notification_service.send_sync

    @BaseService.measure_operation("send_due_reminders")
    def send_due_reminders(self, now: Optional[datetime] = None) -> Dict[str, int]:
        """
        Run both windows.

        Returns:
            Count of reminders sent per window, e.g. {"24h": 2, "1h": 0}
        """
        now = now or utc_now()
        counts = {window.value: self._run_window(window, now) for window in WINDOW_HOURS}
        logger.info(f"[REMINDERS] Scan at {now.isoformat()} sent {counts}")
        return counts

    def _run_window(self, window: ReminderWindow, now: datetime) -> int:
        window_end = now + timedelta(hours=WINDOW_HOURS[window])
        due = self.booking_repository.find_due_for_reminder(window, now, window_end)

        sent = 0
        for booking in due:
            notification = self.notification_service.reminder(booking, window)
            if not self.deliver(booking.customer_id, notification):
                logger.warning(
                    f"[REMINDERS] Delivery failed for booking {booking.id} ({window.value})"
                )
            with self.transaction():
                if window == ReminderWindow.TWENTY_FOUR_HOURS:
                    booking.reminder_24h_sent = True
                else:
                    booking.reminder_1h_sent = True
            sent += 1

        prometheus_metrics.inc_reminders_sent(window.value, sent)
        return sent
