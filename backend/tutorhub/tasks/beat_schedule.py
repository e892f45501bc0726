# backend/tutorhub/tasks/beat_schedule.py
"""
Celery Beat schedule configuration for TutorHub.
"""

from typing import Any, Dict

from celery.schedules import crontab

from tutorhub.core.config import settings


def get_beat_schedule() -> Dict[str, Dict[str, Any]]:
    interval = max(1, settings.auto_complete_interval_minutes)
    return {
        # Close out sessions whose end instant has passed
        "auto-complete-sessions": {
            "task": "tutorhub.tasks.session_tasks.auto_complete_sessions",
            "schedule": crontab(minute=f"*/{interval}"),
            "options": {"queue": "maintenance", "expires": interval * 60},
        },
    }
