# backend/tutorhub/routes/v1/availability.py
"""
Slot availability routes - API v1

Endpoints:
    GET /availability - Bookable slots for one tutor on one date
"""

import asyncio
from datetime import date
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ...api.dependencies.auth import get_current_active_user
from ...api.dependencies.services import get_availability_service
from ...core.exceptions import DomainException
from ...models.user import User
from ...schemas.availability import DaySlotsResponse
from ...services.availability_resolver import AvailabilityService
from ._errors import handle_domain_exception

logger = logging.getLogger(__name__)

router = APIRouter(tags=["availability-v1"])


@router.get("/availability", response_model=DaySlotsResponse)
async def get_availability_slots(
    tutor: str = Query(..., min_length=1, description="Tutor profile id or tutor user id"),
    target_date: date = Query(..., alias="date", description="Local date, YYYY-MM-DD"),
    step: Optional[int] = Query(None, description="Slot length in minutes, clamped to 15-240"),
    current_user: User = Depends(get_current_active_user),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> DaySlotsResponse:
    """List slots; slots that have started or are booked come back unavailable."""
    try:
        result = await asyncio.to_thread(
            availability_service.get_day_slots, tutor, target_date, step
        )
        return DaySlotsResponse(**result)
    except DomainException as e:
        handle_domain_exception(e)
