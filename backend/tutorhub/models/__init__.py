"""
Database models for TutorHub.

This module exports all SQLAlchemy models used in the application:
- Users and subjects (read by scheduling)
- Tutor profiles with weekly availability
- Tutoring sessions and the per tutor-day lock rows
- In-app notifications
"""

from .notification import Notification
from .subject import Subject
from .tutor_day_lock import TutorDayLock
from .tutor_profile import TutorProfile
from .tutoring_session import (
    BLOCKING_STATUSES,
    SessionStatus,
    TutoringSession,
)
from .user import User

__all__ = [
    "BLOCKING_STATUSES",
    "Notification",
    "SessionStatus",
    "Subject",
    "TutorDayLock",
    "TutorProfile",
    "TutoringSession",
    "User",
]
