"""Notification inbox schemas."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from .base import StandardizedModel


class NotificationResponse(StandardizedModel):
    id: str
    type: str
    title: str
    body: Optional[str] = None
    data: Optional[Dict[str, Any]] = None
    read_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class NotificationListResponse(StandardizedModel):
    notifications: List[NotificationResponse]
    total: int
