"""Per tutor-day lock rows serializing booking writes."""

from __future__ import annotations

from sqlalchemy import Column, Date, ForeignKey, Integer, String, UniqueConstraint
import ulid

from ..database import Base
from .types import UTCDateTime


class TutorDayLock(Base):
    """One row per (tutor, local day); updated at the start of each booking transaction."""

    __tablename__ = "tutor_day_locks"
    __table_args__ = (UniqueConstraint("tutor_id", "day", name="uq_tutor_day_locks_tutor_day"),)

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    tutor_id = Column(
        String(26), ForeignKey("tutor_profiles.id", ondelete="CASCADE"), nullable=False
    )
    day = Column(Date, nullable=False)
    version = Column(Integer, nullable=False, default=0)
    touched_at = Column(UTCDateTime, nullable=True)

    def __repr__(self) -> str:
        return f"<TutorDayLock tutor={self.tutor_id} day={self.day} v={self.version}>"
