# backend/tutorhub/services/conflict_checker.py
"""
Conflict Checker Service for TutorHub

Handles booking conflict detection:
- Marking candidate slots that overlap existing sessions
- Finding sessions that block a requested interval

Only scheduled and in-progress sessions occupy a tutor's calendar.
Pending and cancelled sessions never block.
"""

from datetime import date, datetime, timedelta
import logging
from typing import Any, Iterable, List, Mapping, Optional, Protocol, Sequence

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.time_utils import (
    TzLike,
    end_of_day,
    intervals_overlap,
    minutes_of,
    start_of_day,
)
from ..models.tutoring_session import TutoringSession
from ..repositories import RepositoryFactory
from ..repositories.session_repository import SessionRepository
from .base import BaseService

logger = logging.getLogger(__name__)


class BookedInterval(Protocol):
    scheduled_at: datetime
    duration_minutes: int


def _session_interval(session: BookedInterval) -> tuple[datetime, datetime]:
    start = session.scheduled_at
    return start, start + timedelta(minutes=int(session.duration_minutes))


def _slot_interval(slot: Mapping[str, Any]) -> tuple[datetime, datetime]:
    start = slot["at"]
    length = minutes_of(slot["end"]) - minutes_of(slot["start"])
    return start, start + timedelta(minutes=length)


def filter_conflicts(
    candidate_slots: Iterable[dict], booked_sessions: Sequence[BookedInterval]
) -> List[dict]:
    """
    Mark slots that overlap any booked session as unavailable.

    Slots already unavailable stay unavailable. The input dicts are not
    mutated; new dicts are returned in the same order.
    """
    intervals = [_session_interval(s) for s in booked_sessions]
    result: List[dict] = []
    for slot in candidate_slots:
        available = bool(slot.get("available"))
        if available and intervals:
            slot_start, slot_end = _slot_interval(slot)
            for booked_start, booked_end in intervals:
                if intervals_overlap(slot_start, slot_end, booked_start, booked_end):
                    available = False
                    break
        result.append({**slot, "available": available})
    return result


class ConflictChecker(BaseService):
    """
    Service for checking session conflicts.

    Centralizes conflict detection so slot listing and booking agree on
    what blocks a tutor's calendar.
    """

    def __init__(self, db: Session, repository: Optional[SessionRepository] = None):
        super().__init__(db)
        self.logger = logging.getLogger(__name__)
        self.repository = repository or RepositoryFactory.create_session_repository(db)

    def _lookback(self) -> timedelta:
        # A session starting before the window can still run into it
        return timedelta(minutes=settings.max_session_duration_minutes)

    @BaseService.measure_operation("get_booked_sessions_for_day")
    def get_booked_sessions_for_day(
        self,
        tutor_id: str,
        target_date: date,
        tz: Optional[TzLike] = None,
        exclude_session_id: Optional[str] = None,
    ) -> List[TutoringSession]:
        """
        Get the tutor's blocking sessions that can touch a local day.

        Args:
            tutor_id: Tutor profile id
            target_date: Local calendar date
            tz: Tutor's timezone
            exclude_session_id: Optional session to leave out

        Returns:
            Sessions ordered by start instant
        """
        return self.repository.get_blocking_sessions_between(
            tutor_id,
            start_of_day(target_date, tz) - self._lookback(),
            end_of_day(target_date, tz),
            exclude_session_id=exclude_session_id,
        )

    @BaseService.measure_operation("find_conflicts")
    def find_conflicts(
        self,
        tutor_id: str,
        start: datetime,
        end: datetime,
        exclude_session_id: Optional[str] = None,
    ) -> List[TutoringSession]:
        """
        Return the blocking sessions that overlap [start, end).

        Args:
            tutor_id: Tutor profile id
            start: Aware start instant
            end: Aware end instant
            exclude_session_id: Optional session id to exclude from the check

        Returns:
            Overlapping sessions, empty when the interval is free
        """
        candidates = self.repository.get_blocking_sessions_between(
            tutor_id,
            start - self._lookback(),
            end,
            exclude_session_id=exclude_session_id,
        )
        conflicts = [
            s for s in candidates if intervals_overlap(start, end, *_session_interval(s))
        ]
        if conflicts:
            self.logger.warning(
                f"Found {len(conflicts)} session conflicts for tutor {tutor_id} "
                f"between {start.isoformat()} and {end.isoformat()}"
            )
        return conflicts

    def has_conflict(
        self,
        tutor_id: str,
        start: datetime,
        end: datetime,
        exclude_session_id: Optional[str] = None,
    ) -> bool:
        """Simplified boolean check for quick validation."""
        return bool(self.find_conflicts(tutor_id, start, end, exclude_session_id))
