# backend/tutorhub/models/tutor_profile.py
"""
Tutor profile model.

A profile belongs to exactly one tutor user and carries the weekly
availability document used to generate bookable slots.
"""

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, ForeignKey, Numeric, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from sqlalchemy.types import JSON
import ulid

from ..database import Base


class TutorProfile(Base):
    __tablename__ = "tutor_profiles"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    user_id = Column(
        String(26), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    bio = Column(String(2000), nullable=True)
    hourly_rate = Column(Numeric(10, 2), nullable=False, default=0)
    # {"monday": {"isAvailable": true, "startTime": "09:00", "endTime": "17:00"}, ...}
    availability = Column(JSON, nullable=False, default=dict)
    timezone = Column(String(64), nullable=True)
    is_verified = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    user = relationship("User", foreign_keys=[user_id])

    __table_args__ = (CheckConstraint("hourly_rate >= 0", name="ck_tutor_profiles_rate"),)

    def __repr__(self) -> str:
        return f"<TutorProfile {self.id} user={self.user_id}>"
