"""
Repository layer for TutorHub.

Repositories own all SQLAlchemy queries; services never query directly.
"""

from .base_repository import BaseRepository
from .factory import RepositoryFactory
from .notification_repository import NotificationRepository
from .session_repository import SessionRepository
from .tutor_day_lock_repository import TutorDayLockRepository
from .tutor_profile_repository import TutorProfileRepository
from .user_repository import UserRepository

__all__ = [
    "BaseRepository",
    "NotificationRepository",
    "RepositoryFactory",
    "SessionRepository",
    "TutorDayLockRepository",
    "TutorProfileRepository",
    "UserRepository",
]
