# tests/unit/test_celery_schedule.py
"""
Tests for the Celery app wiring of the reminder job.
"""

from unittest.mock import MagicMock, patch

from servicehub.tasks.beat_schedule import get_beat_schedule
from servicehub.tasks.celery_app import celery_app


def test_reminders_run_every_five_minutes():
    entry = get_beat_schedule()["send-booking-reminders"]

    assert entry["task"] == "reminders.send_due"
    assert entry["schedule"]._orig_minute == "*/5"
    assert entry["options"]["queue"] == "notifications"


def test_beat_schedule_registered_on_app():
    assert "send-booking-reminders" in celery_app.conf.beat_schedule


def test_reminder_task_runs_scan():
    from servicehub.tasks import reminder_tasks

    session = MagicMock()
    with patch.object(reminder_tasks, "SessionLocal", return_value=session), patch.object(
        reminder_tasks, "ReminderService"
    ) as service_cls:
        service_cls.return_value.send_due_reminders.return_value = {"24h": 2, "1h": 1}

        result = reminder_tasks.send_due_reminders.run()

    assert result == {"24h": 2, "1h": 1}
    service_cls.assert_called_once_with(session)
    session.close.assert_called_once()
