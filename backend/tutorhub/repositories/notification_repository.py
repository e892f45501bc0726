"""Repository for in-app notification inbox entries."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, cast

from sqlalchemy.orm import Session

from ..models.notification import Notification
from .base_repository import BaseRepository


class NotificationRepository(BaseRepository[Notification]):
    """Data access for inbox entries."""

    def __init__(self, db: Session) -> None:
        super().__init__(db, Notification)

    def create_notification(
        self,
        *,
        user_id: str,
        type: str,
        title: str,
        body: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> Notification:
        return self.create(user_id=user_id, type=type, title=title, body=body, data=data)

    def get_user_notifications(
        self, user_id: str, *, limit: int = 20, offset: int = 0, unread_only: bool = False
    ) -> List[Notification]:
        query = self.db.query(Notification).filter(Notification.user_id == user_id)
        if unread_only:
            query = query.filter(Notification.read_at.is_(None))
        query = query.order_by(Notification.created_at.desc(), Notification.id.desc())
        return cast(List[Notification], query.offset(offset).limit(limit).all())
