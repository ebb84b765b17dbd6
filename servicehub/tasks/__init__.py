# servicehub/tasks/__init__.py
"""
Celery tasks package for ServiceHub.

This package contains the periodic booking reminder scan.
"""

from .celery_app import BaseTask, celery_app
from .reminder_tasks import send_due_reminders

__all__ = ["BaseTask", "celery_app", "send_due_reminders"]
