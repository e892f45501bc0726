# backend/tutorhub/models/tutoring_session.py
"""
Tutoring session model for TutorHub.

A session is a booked block of a tutor's time for one student and subject.
Sessions are self-contained: the price is snapshotted at booking time and
the interval is stored as a UTC start instant plus a duration, so later
availability edits never rewrite existing commitments.
"""

from datetime import datetime, timedelta, timezone
from enum import Enum
import logging
from typing import Optional

from sqlalchemy import CheckConstraint, Column, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..database import Base
from .types import UTCDateTime

logger = logging.getLogger(__name__)


class SessionStatus(str, Enum):
    """Session lifecycle statuses."""

    PENDING = "pending"  # Awaiting tutor confirmation
    SCHEDULED = "scheduled"  # Confirmed, blocks the tutor's calendar
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# Statuses that occupy the tutor's calendar
BLOCKING_STATUSES = (SessionStatus.SCHEDULED.value, SessionStatus.IN_PROGRESS.value)


class TutoringSession(Base):
    __tablename__ = "tutoring_sessions"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))

    tutor_id = Column(String(26), ForeignKey("tutor_profiles.id"), nullable=False)
    student_id = Column(String(26), ForeignKey("users.id"), nullable=False)
    subject_id = Column(String(64), ForeignKey("subjects.id"), nullable=False)

    scheduled_at = Column(UTCDateTime, nullable=False)
    duration_minutes = Column(Integer, nullable=False, default=60)
    status = Column(String(20), nullable=False, default=SessionStatus.SCHEDULED.value, index=True)
    price_cents = Column(Integer, nullable=False, default=0)
    notes = Column(Text, nullable=True)
    meeting_link = Column(String(500), nullable=True)

    created_at = Column(UTCDateTime, server_default=func.now())
    updated_at = Column(UTCDateTime, server_default=func.now(), onupdate=func.now())
    completed_at = Column(UTCDateTime, nullable=True)
    cancelled_at = Column(UTCDateTime, nullable=True)
    cancelled_by_id = Column(String(26), ForeignKey("users.id"), nullable=True)

    tutor = relationship("TutorProfile", foreign_keys=[tutor_id])
    student = relationship("User", foreign_keys=[student_id])
    subject = relationship("Subject", foreign_keys=[subject_id])

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'scheduled', 'in_progress', 'completed', 'cancelled')",
            name="ck_tutoring_sessions_status",
        ),
        CheckConstraint("duration_minutes > 0", name="check_duration_positive"),
        CheckConstraint("price_cents >= 0", name="check_price_non_negative"),
        Index("ix_tutoring_sessions_tutor_start", "tutor_id", "scheduled_at"),
        Index("ix_tutoring_sessions_student_start", "student_id", "scheduled_at"),
    )

    @property
    def ends_at(self) -> datetime:
        return self.scheduled_at + timedelta(minutes=int(self.duration_minutes))

    def complete(self, when: Optional[datetime] = None) -> None:
        """Mark session as completed."""
        self.status = SessionStatus.COMPLETED.value
        self.completed_at = when or datetime.now(timezone.utc)
        logger.info(f"Session {self.id} marked as completed")

    def cancel(self, cancelled_by_user_id: str) -> None:
        """Cancel this session."""
        self.status = SessionStatus.CANCELLED.value
        self.cancelled_at = datetime.now(timezone.utc)
        self.cancelled_by_id = cancelled_by_user_id
        logger.info(f"Session {self.id} cancelled by user {cancelled_by_user_id}")

    def involves(self, user_id: str, tutor_user_id: Optional[str]) -> bool:
        return user_id == self.student_id or (tutor_user_id is not None and user_id == tutor_user_id)

    def __repr__(self) -> str:
        return (
            f"<TutoringSession {self.id}: tutor={self.tutor_id}, student={self.student_id}, "
            f"at={self.scheduled_at}, status={self.status}>"
        )
