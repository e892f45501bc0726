# backend/tutorhub/routes/v1/tutors.py
"""
Tutor availability management routes - API v1

Endpoints:
    GET /tutors/{tutor_ref}/availability - Weekly availability document
    PUT /tutors/{profile_id}/availability - Replace weekly availability
"""

import asyncio
import logging

from fastapi import APIRouter, Body, Depends

from ...api.dependencies.auth import get_current_active_user
from ...api.dependencies.services import get_tutor_profile_service
from ...core.exceptions import DomainException
from ...models.user import User
from ...schemas.availability import WeeklyAvailability, WeeklyAvailabilityResponse
from ...services.tutor_profile_service import TutorProfileService
from ._errors import handle_domain_exception

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tutors", tags=["tutors-v1"])


@router.get("/{tutor_ref}/availability", response_model=WeeklyAvailabilityResponse)
async def get_weekly_availability(
    tutor_ref: str,
    current_user: User = Depends(get_current_active_user),
    tutor_service: TutorProfileService = Depends(get_tutor_profile_service),
) -> WeeklyAvailabilityResponse:
    try:
        result = await asyncio.to_thread(tutor_service.get_availability, tutor_ref)
        return WeeklyAvailabilityResponse(**result)
    except DomainException as e:
        handle_domain_exception(e)


@router.put("/{profile_id}/availability", response_model=WeeklyAvailabilityResponse)
async def replace_weekly_availability(
    profile_id: str,
    weekly: WeeklyAvailability = Body(...),
    current_user: User = Depends(get_current_active_user),
    tutor_service: TutorProfileService = Depends(get_tutor_profile_service),
) -> WeeklyAvailabilityResponse:
    """Replace the whole weekly document; days left out are closed."""
    try:
        result = await asyncio.to_thread(
            tutor_service.update_availability, current_user, profile_id, weekly
        )
        return WeeklyAvailabilityResponse(**result)
    except DomainException as e:
        handle_domain_exception(e)
