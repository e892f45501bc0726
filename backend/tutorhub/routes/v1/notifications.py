"""
Notification inbox routes - API v1

Endpoints:
    GET /notifications - Caller's notifications, newest first
"""

import asyncio
import logging

from fastapi import APIRouter, Depends, Query

from ...api.dependencies.auth import get_current_active_user
from ...api.dependencies.services import get_notification_service
from ...models.user import User
from ...schemas.notification import NotificationListResponse, NotificationResponse
from ...services.notification_service import NotificationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notifications", tags=["notifications-v1"])


@router.get("", response_model=NotificationListResponse)
async def list_notifications(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    unread_only: bool = Query(False),
    current_user: User = Depends(get_current_active_user),
    notification_service: NotificationService = Depends(get_notification_service),
) -> NotificationListResponse:
    notifications = await asyncio.to_thread(
        notification_service.list_for_user,
        current_user.id,
        limit=limit,
        offset=offset,
        unread_only=unread_only,
    )
    items = [NotificationResponse.model_validate(n) for n in notifications]
    return NotificationListResponse(notifications=items, total=len(items))
