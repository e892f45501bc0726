# backend/tutorhub/routes/v1/sessions.py
"""
Tutoring session routes - API v1

All business logic delegated to BookingService and SessionLifecycleService.

Endpoints:
    POST /sessions - Book a session
    GET /sessions - Role-scoped session list
    GET /sessions/{session_id} - Session details (participants and admins)
    PUT /sessions/{session_id} - Change session status
"""

import asyncio
import logging
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query, status
from sqlalchemy.orm import Session

from ...api.dependencies.auth import get_current_active_user
from ...api.dependencies.database import get_db
from ...api.dependencies.services import get_booking_service, get_session_lifecycle_service
from ...core.exceptions import DomainException
from ...models.user import User
from ...schemas.session import SessionCreate, SessionResponse, SessionStatusUpdate
from ...services.booking_service import BookingService
from ...services.session_lifecycle_service import SessionLifecycleService
from ...services.session_views import session_view_for
from ._errors import handle_domain_exception

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sessions", tags=["sessions-v1"])


@router.post("", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
async def create_session(
    session_data: SessionCreate = Body(...),
    current_user: User = Depends(get_current_active_user),
    booking_service: BookingService = Depends(get_booking_service),
) -> SessionResponse:
    try:
        session = await asyncio.to_thread(
            booking_service.book_session,
            current_user,
            session_data.tutor_id,
            session_data.subject_id,
            session_data.scheduled_at,
            session_data.duration,
            session_data.notes,
        )
        return SessionResponse.model_validate(session)
    except DomainException as e:
        handle_domain_exception(e)


@router.get("", response_model=List[SessionResponse])
async def list_sessions(
    status_filter: Optional[str] = Query(None, alias="status"),
    upcoming_only: bool = Query(False),
    limit: int = Query(50, ge=1, le=200),
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
) -> List[SessionResponse]:
    """Students see their own sessions, tutors their profile's, admins all."""
    try:
        view = session_view_for(db, current_user)
        sessions = await asyncio.to_thread(
            view.list_sessions, status=status_filter, upcoming_only=upcoming_only, limit=limit
        )
        return [SessionResponse.model_validate(s) for s in sessions]
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/{session_id}", response_model=SessionResponse)
async def get_session(
    session_id: str,
    current_user: User = Depends(get_current_active_user),
    lifecycle_service: SessionLifecycleService = Depends(get_session_lifecycle_service),
) -> SessionResponse:
    try:
        session = await asyncio.to_thread(
            lifecycle_service.get_session_for_user, session_id, current_user
        )
        return SessionResponse.model_validate(session)
    except DomainException as e:
        handle_domain_exception(e)


@router.put("/{session_id}", response_model=SessionResponse)
async def update_session_status(
    session_id: str,
    update: SessionStatusUpdate = Body(...),
    current_user: User = Depends(get_current_active_user),
    lifecycle_service: SessionLifecycleService = Depends(get_session_lifecycle_service),
) -> SessionResponse:
    try:
        session = await asyncio.to_thread(
            lifecycle_service.set_status, session_id, update.status, current_user
        )
        return SessionResponse.model_validate(session)
    except DomainException as e:
        handle_domain_exception(e)
