# servicehub/tasks/reminder_tasks.py
"""
Celery task for booking reminders.

Runs the ReminderService scan in its own session. Notifications go out
through a plain Redis PUBLISH since workers have no Broadcaster.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Dict, Iterator

from celery.utils.log import get_task_logger
from sqlalchemy.orm import Session

from ..database import SessionLocal
from ..services.reminder_service import ReminderService
from .celery_app import celery_app

logger = get_task_logger(__name__)


@contextmanager
def _session_scope() -> Iterator[Session]:
    """Provide transactional scope for use in tasks."""
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@celery_app.task(
    name="reminders.send_due", autoretry_for=(), max_retries=0, queue="notifications"
)
def send_due_reminders() -> Dict[str, int]:
    """
    Send every reminder that is due now.

    Returns:
        Count of reminders sent per window
    """
    with _session_scope() as session:
        counts = ReminderService(session).send_due_reminders()
    if any(counts.values()):
        logger.info("Sent booking reminders: %s", counts)
    return counts
