# backend/tutorhub/routes/v1/cron.py
"""
Scheduled maintenance routes - API v1

Called by an external scheduler as an alternative to Celery beat.

Endpoints:
    POST /cron/auto-complete-sessions - Complete sessions whose end has passed
"""

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends

from ...api.dependencies.auth import verify_cron_secret
from ...api.dependencies.services import get_session_lifecycle_service
from ...schemas.cron import AutoCompleteRequest, AutoCompleteResponse
from ...services.session_lifecycle_service import SessionLifecycleService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cron", tags=["cron-v1"], dependencies=[Depends(verify_cron_secret)])


@router.post("/auto-complete-sessions", response_model=AutoCompleteResponse)
async def auto_complete_sessions(
    payload: Optional[AutoCompleteRequest] = Body(None),
    lifecycle_service: SessionLifecycleService = Depends(get_session_lifecycle_service),
) -> AutoCompleteResponse:
    cutoff = payload.now if payload else None
    result = await asyncio.to_thread(lifecycle_service.auto_complete_sessions, cutoff)
    logger.info(
        f"Auto-complete sweep: checked={result['checked']} completed={result['completed']} "
        f"failed_batches={result['failed_batches']}"
    )
    return AutoCompleteResponse(**result)
