# backend/tutorhub/services/notification_service.py
"""
Notification Service for TutorHub

Writes in-app inbox rows for session events. Delivery is best effort:
a failure to notify never undoes the booking or status change that
triggered it.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..core.constants import (
    NOTIFICATION_SESSION_REQUESTED,
    NOTIFICATION_SESSION_STATUS_CHANGED,
)
from ..models.notification import Notification
from ..models.tutoring_session import TutoringSession
from ..repositories import RepositoryFactory
from ..repositories.notification_repository import NotificationRepository
from .base import BaseService

logger = logging.getLogger(__name__)


class NotificationService(BaseService):
    """Creates and lists in-app notifications."""

    def __init__(self, db: Session, repository: Optional[NotificationRepository] = None):
        super().__init__(db)
        self.repository = repository or RepositoryFactory.create_notification_repository(db)

    def notify(
        self,
        user_id: str,
        type: str,
        title: str,
        body: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> Optional[Notification]:
        """
        Write one inbox row inside a savepoint.

        Returns:
            The notification, or None when writing failed (the error is logged)
        """
        try:
            with self.db.begin_nested():
                notification = self.repository.create_notification(
                    user_id=user_id, type=type, title=title, body=body, data=data
                )
            return notification
        except Exception as e:
            self.logger.error(
                f"Failed to create {type} notification for user {user_id}: {str(e)}",
                exc_info=True,
            )
            return None

    def notify_session_requested(
        self, session: TutoringSession, tutor_user_id: str
    ) -> Optional[Notification]:
        when = session.scheduled_at.isoformat()
        return self.notify(
            tutor_user_id,
            NOTIFICATION_SESSION_REQUESTED,
            "New session request",
            f"A student booked a {session.duration_minutes}-minute session starting {when}.",
            {"session_id": session.id, "scheduled_at": when, "status": session.status},
        )

    def notify_status_changed(
        self, session: TutoringSession, recipient_id: str, previous_status: str
    ) -> Optional[Notification]:
        return self.notify(
            recipient_id,
            NOTIFICATION_SESSION_STATUS_CHANGED,
            f"Session {session.status.replace('_', ' ')}",
            f"Your session on {session.scheduled_at.isoformat()} is now {session.status}.",
            {
                "session_id": session.id,
                "previous_status": previous_status,
                "status": session.status,
            },
        )

    @BaseService.measure_operation("list_notifications")
    def list_for_user(
        self, user_id: str, *, limit: int = 20, offset: int = 0, unread_only: bool = False
    ) -> List[Notification]:
        """Newest first."""
        return self.repository.get_user_notifications(
            user_id, limit=limit, offset=offset, unread_only=unread_only
        )
