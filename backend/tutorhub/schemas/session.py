# backend/tutorhub/schemas/session.py
"""
Tutoring session schemas for TutorHub.

Sessions are self-contained: start instant, duration, snapshotted price.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from ..core.time_utils import ensure_aware_utc
from ..models.tutoring_session import SessionStatus
from ._strict_base import StrictRequestModel
from .base import StandardizedModel


class SessionCreate(StrictRequestModel):
    """Book a session with a tutor."""

    tutor_id: str = Field(..., description="Tutor profile id or tutor user id")
    subject_id: str = Field(..., description="Subject to be taught")
    scheduled_at: datetime = Field(..., description="Start instant; naive values are read as UTC")
    duration: int = Field(60, description="Duration in minutes")
    notes: Optional[str] = Field(None, max_length=1000)

    @field_validator("scheduled_at")
    @classmethod
    def _normalize_instant(cls, value: datetime) -> datetime:
        return ensure_aware_utc(value)


class SessionStatusUpdate(StrictRequestModel):
    status: SessionStatus


class SessionResponse(StandardizedModel):
    id: str
    tutor_id: str
    student_id: str
    subject_id: str
    scheduled_at: datetime
    duration_minutes: int
    status: str
    price_cents: int
    notes: Optional[str] = None
    meeting_link: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancelled_by_id: Optional[str] = None
