# servicehub/tasks/beat_schedule.py
"""
Celery Beat schedule configuration for ServiceHub.

Tasks are scheduled using crontab expressions for precise timing control.
"""

from typing import Any, Dict

from celery.schedules import crontab

from ..core.config import settings


def get_beat_schedule() -> Dict[str, Dict[str, Any]]:
    """Periodic tasks, with the reminder cadence taken from settings."""
    return {
        # Booking reminders - both the 24h and the 1h window in one scan
        "send-booking-reminders": {
            "task": "reminders.send_due",
            "schedule": crontab(minute=f"*/{settings.reminder_interval_minutes}"),
            "options": {
                "queue": "notifications",
                # A scan older than the interval is superseded by the next one
                "expires": settings.reminder_interval_minutes * 60,
            },
        },
    }
