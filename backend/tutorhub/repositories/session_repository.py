# backend/tutorhub/repositories/session_repository.py
"""
Session Repository for TutorHub

Data access for tutoring sessions: conflict-check windows, role-scoped
listings and the candidates for the auto-completion sweep.
"""

from datetime import datetime
import logging
from typing import List, Optional, Sequence, cast

from sqlalchemy import func, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session, joinedload

from ..core.exceptions import RepositoryException
from ..models.tutoring_session import BLOCKING_STATUSES, SessionStatus, TutoringSession
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class SessionRepository(BaseRepository[TutoringSession]):
    """Repository for tutoring session data access."""

    def __init__(self, db: Session):
        super().__init__(db, TutoringSession)
        self.logger = logging.getLogger(__name__)

    def _apply_eager_loading(self, query: Query) -> Query:
        return query.options(joinedload(TutoringSession.tutor))

    # Conflict queries

    def get_blocking_sessions_between(
        self,
        tutor_id: str,
        window_start: datetime,
        window_end: datetime,
        exclude_session_id: Optional[str] = None,
    ) -> List[TutoringSession]:
        """
        Get the tutor's calendar-blocking sessions starting inside a window.

        Args:
            tutor_id: Tutor profile id
            window_start: Inclusive lower bound on scheduled_at
            window_end: Inclusive upper bound on scheduled_at
            exclude_session_id: Optional session to leave out (re-checks)

        Returns:
            Sessions ordered by start instant
        """
        try:
            query = self.db.query(TutoringSession).filter(
                TutoringSession.tutor_id == tutor_id,
                TutoringSession.status.in_(BLOCKING_STATUSES),
                TutoringSession.scheduled_at >= window_start,
                TutoringSession.scheduled_at <= window_end,
            )
            if exclude_session_id:
                query = query.filter(TutoringSession.id != exclude_session_id)
            return cast(List[TutoringSession], query.order_by(TutoringSession.scheduled_at).all())
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting sessions for conflict check: {str(e)}")
            raise RepositoryException(f"Failed to get conflict sessions: {str(e)}")

    # Listings

    def list_sessions(
        self,
        *,
        student_id: Optional[str] = None,
        tutor_id: Optional[str] = None,
        status: Optional[str] = None,
        starting_after: Optional[datetime] = None,
        limit: int = 50,
    ) -> List[TutoringSession]:
        try:
            query = self.db.query(TutoringSession)
            if student_id is not None:
                query = query.filter(TutoringSession.student_id == student_id)
            if tutor_id is not None:
                query = query.filter(TutoringSession.tutor_id == tutor_id)
            if status is not None:
                query = query.filter(TutoringSession.status == status)
            if starting_after is not None:
                query = query.filter(TutoringSession.scheduled_at >= starting_after)
                query = query.order_by(TutoringSession.scheduled_at.asc())
            else:
                query = query.order_by(TutoringSession.scheduled_at.desc())
            return cast(List[TutoringSession], query.limit(limit).all())
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing sessions: {str(e)}")
            raise RepositoryException(f"Failed to list sessions: {str(e)}")

    # Auto-completion sweep

    def get_active_sessions_started_before(self, cutoff: datetime) -> List[TutoringSession]:
        """Scheduled or in-progress sessions starting at or before ``cutoff``.

        End instants are compared by the caller since interval arithmetic is
        not portable across dialects.
        """
        try:
            return cast(
                List[TutoringSession],
                self.db.query(TutoringSession)
                .filter(
                    TutoringSession.status.in_(BLOCKING_STATUSES),
                    TutoringSession.scheduled_at <= cutoff,
                )
                .order_by(TutoringSession.scheduled_at)
                .all(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading active sessions: {str(e)}")
            raise RepositoryException(f"Failed to load active sessions: {str(e)}")

    def mark_completed(self, session_ids: Sequence[str], completed_at: datetime) -> int:
        """
        Complete the given sessions if they are still active.

        The status guard makes re-running a chunk a no-op.
        """
        if not session_ids:
            return 0
        try:
            result = self.db.execute(
                update(TutoringSession)
                .where(
                    TutoringSession.id.in_(list(session_ids)),
                    TutoringSession.status.in_(BLOCKING_STATUSES),
                )
                .values(
                    status=SessionStatus.COMPLETED.value,
                    completed_at=completed_at,
                    updated_at=func.now(),
                )
                .execution_options(synchronize_session="fetch")
            )
            return int(result.rowcount or 0)
        except SQLAlchemyError as e:
            self.logger.error(f"Error completing sessions: {str(e)}")
            raise RepositoryException(f"Failed to complete sessions: {str(e)}")
