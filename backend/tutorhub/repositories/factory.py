# backend/tutorhub/repositories/factory.py
"""
Repository Factory for TutorHub

Provides centralized creation of repository instances,
ensuring consistent initialization and dependency injection.
"""

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from .base_repository import BaseRepository

# Avoid circular imports
if TYPE_CHECKING:
    from .notification_repository import NotificationRepository
    from .session_repository import SessionRepository
    from .tutor_day_lock_repository import TutorDayLockRepository
    from .tutor_profile_repository import TutorProfileRepository
    from .user_repository import UserRepository


class RepositoryFactory:
    """
    Factory class for creating repository instances.

    Centralizes repository creation to ensure consistent initialization
    and makes it easy to swap implementations if needed.
    """

    @staticmethod
    def create_base_repository(db: Session, model) -> BaseRepository:
        """Create a generic base repository for any model."""
        return BaseRepository(db, model)

    @staticmethod
    def create_session_repository(db: Session) -> "SessionRepository":
        """Create repository for tutoring session operations."""
        from .session_repository import SessionRepository

        return SessionRepository(db)

    @staticmethod
    def create_tutor_profile_repository(db: Session) -> "TutorProfileRepository":
        """Create repository for tutor profile lookups (profile id or user id)."""
        from .tutor_profile_repository import TutorProfileRepository

        return TutorProfileRepository(db)

    @staticmethod
    def create_tutor_day_lock_repository(db: Session) -> "TutorDayLockRepository":
        """Create repository for per tutor-day write serialization."""
        from .tutor_day_lock_repository import TutorDayLockRepository

        return TutorDayLockRepository(db)

    @staticmethod
    def create_user_repository(db: Session) -> "UserRepository":
        from .user_repository import UserRepository

        return UserRepository(db)

    @staticmethod
    def create_notification_repository(db: Session) -> "NotificationRepository":
        from .notification_repository import NotificationRepository

        return NotificationRepository(db)
