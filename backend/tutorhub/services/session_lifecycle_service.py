# backend/tutorhub/services/session_lifecycle_service.py
"""
Session Lifecycle Service for TutorHub

Owns the session state machine:

    pending -> scheduled -> in_progress -> completed
    pending | scheduled -> cancelled

completed and cancelled are terminal. Moving a session into scheduled
re-runs the conflict check under the tutor-day lock, since pending
sessions never reserved their interval.

Also runs the auto-completion sweep that closes out sessions whose end
instant has passed.
"""

from datetime import datetime, timedelta
import logging
from typing import Dict, FrozenSet, List, Optional, TypedDict, Union

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.constants import MAX_AUTO_COMPLETE_BATCH_SIZE
from ..core.exceptions import (
    BookingConflictException,
    ForbiddenException,
    InvalidStatusTransitionException,
    NotFoundException,
    ValidationException,
)
from ..core.time_utils import utc_now
from ..models.tutoring_session import SessionStatus, TutoringSession
from ..models.user import User
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories import RepositoryFactory
from ..repositories.tutor_day_lock_repository import is_lock_contention_error
from .availability_resolver import profile_timezone
from .base import BaseService
from .conflict_checker import ConflictChecker
from .notification_service import NotificationService

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: Dict[str, FrozenSet[str]] = {
    SessionStatus.PENDING.value: frozenset(
        {SessionStatus.SCHEDULED.value, SessionStatus.CANCELLED.value}
    ),
    SessionStatus.SCHEDULED.value: frozenset(
        {SessionStatus.IN_PROGRESS.value, SessionStatus.CANCELLED.value}
    ),
    SessionStatus.IN_PROGRESS.value: frozenset({SessionStatus.COMPLETED.value}),
    SessionStatus.COMPLETED.value: frozenset(),
    SessionStatus.CANCELLED.value: frozenset(),
}


def can_transition(current: str, requested: str) -> bool:
    return requested in ALLOWED_TRANSITIONS.get(current, frozenset())


class AutoCompleteResult(TypedDict):
    checked: int
    completed: int
    failed_batches: int
    cutoff: datetime


class SessionLifecycleService(BaseService):
    """Status changes for individual sessions and the bulk completion sweep."""

    def __init__(
        self,
        db: Session,
        notification_service: Optional[NotificationService] = None,
        conflict_checker: Optional[ConflictChecker] = None,
    ):
        super().__init__(db)
        self.repository = RepositoryFactory.create_session_repository(db)
        self.tutor_repository = RepositoryFactory.create_tutor_profile_repository(db)
        self.lock_repository = RepositoryFactory.create_tutor_day_lock_repository(db)
        self.conflict_checker = conflict_checker or ConflictChecker(db, self.repository)
        self.notification_service = notification_service or NotificationService(db)

    def _tutor_user_id(self, session: TutoringSession) -> Optional[str]:
        profile = self.tutor_repository.get_by_id(session.tutor_id, load_relationships=False)
        return profile.user_id if profile else None

    def get_session_for_user(self, session_id: str, user: User) -> TutoringSession:
        """
        Fetch one session for a participant or an admin.

        Raises:
            NotFoundException: Unknown session
            ForbiddenException: Caller is not a participant or admin
        """
        session = self.repository.get_by_id(session_id)
        if session is None:
            raise NotFoundException("Session not found", code="SESSION_NOT_FOUND")
        if not user.is_admin and not session.involves(user.id, self._tutor_user_id(session)):
            raise ForbiddenException("You do not have access to this session")
        return session

    @BaseService.measure_operation("set_session_status")
    def set_status(
        self,
        session_id: str,
        new_status: Union[str, SessionStatus],
        actor: User,
    ) -> TutoringSession:
        """
        Move a session to a new status.

        Args:
            session_id: Session to update
            new_status: Requested status
            actor: User performing the change

        Returns:
            The updated session

        Raises:
            ValidationException: Unknown status value
            NotFoundException: Unknown session
            ForbiddenException: Actor is not the student, the owning tutor or an admin
            InvalidStatusTransitionException: Transition not allowed
            BookingConflictException: Confirming would double-book the tutor
        """
        try:
            requested = SessionStatus(new_status).value
        except ValueError:
            raise ValidationException(f"Unknown session status: {new_status}", code="INVALID_STATUS")

        session = self.get_session_for_user(session_id, actor)
        tutor_user_id = self._tutor_user_id(session)
        previous = session.status

        if not can_transition(previous, requested):
            raise InvalidStatusTransitionException(previous, requested)

        self.log_operation(
            "set_session_status",
            session_id=session.id,
            actor_id=actor.id,
            previous_status=previous,
            requested_status=requested,
        )

        with self.repository.transaction():
            if requested == SessionStatus.SCHEDULED.value:
                self._lock_and_recheck(session)
                if not can_transition(session.status, requested):
                    raise InvalidStatusTransitionException(session.status, requested)
            if requested == SessionStatus.COMPLETED.value:
                session.complete()
            elif requested == SessionStatus.CANCELLED.value:
                session.cancel(actor.id)
            else:
                session.status = requested
            self.repository.flush()

        self._notify_counterparty(session, actor, tutor_user_id, previous)
        return session

    def _lock_and_recheck(self, session: TutoringSession) -> None:
        profile = self.tutor_repository.get_by_id(session.tutor_id, load_relationships=False)
        zone = profile_timezone(profile) if profile else None
        local_day = session.scheduled_at.astimezone(zone).date() if zone else session.scheduled_at.date()
        try:
            self.lock_repository.acquire(session.tutor_id, local_day)
        except OperationalError as exc:
            if not is_lock_contention_error(exc):
                raise
            raise BookingConflictException(details={"session_id": session.id}) from exc
        self.db.refresh(session)
        conflicts = self.conflict_checker.find_conflicts(
            session.tutor_id,
            session.scheduled_at,
            session.ends_at,
            exclude_session_id=session.id,
        )
        if conflicts:
            raise BookingConflictException(
                details={
                    "session_id": session.id,
                    "conflicting_session_ids": [c.id for c in conflicts],
                }
            )

    def _notify_counterparty(
        self,
        session: TutoringSession,
        actor: User,
        tutor_user_id: Optional[str],
        previous_status: str,
    ) -> None:
        recipients: List[str] = []
        if actor.id != session.student_id:
            recipients.append(session.student_id)
        if tutor_user_id and actor.id != tutor_user_id:
            recipients.append(tutor_user_id)
        try:
            for recipient in recipients:
                self.notification_service.notify_status_changed(session, recipient, previous_status)
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to send status notification for session {session.id}: {str(e)}")

    @BaseService.measure_operation("auto_complete_sessions")
    def auto_complete_sessions(
        self,
        cutoff: Optional[datetime] = None,
        batch_size: Optional[int] = None,
    ) -> AutoCompleteResult:
        """
        Complete every scheduled or in-progress session that ended by ``cutoff``.

        Work is committed in chunks of ``batch_size``. A chunk that fails is
        rolled back and logged and the sweep moves on. Running the sweep
        again for the same cutoff completes nothing new.

        Returns:
            Counts of examined and completed sessions, failed chunks and the cutoff used
        """
        cutoff = cutoff or utc_now()
        size = max(
            1, min(batch_size or settings.auto_complete_batch_size, MAX_AUTO_COMPLETE_BATCH_SIZE)
        )

        candidates = self.repository.get_active_sessions_started_before(cutoff)
        due_ids = [
            s.id
            for s in candidates
            if s.scheduled_at + timedelta(minutes=int(s.duration_minutes)) <= cutoff
        ]

        completed = 0
        failed_batches = 0
        for offset in range(0, len(due_ids), size):
            chunk = due_ids[offset : offset + size]
            try:
                with self.repository.transaction():
                    completed += self.repository.mark_completed(chunk, utc_now())
            except Exception as e:
                failed_batches += 1
                logger.error(
                    f"Auto-complete batch starting at {offset} failed ({len(chunk)} sessions): {str(e)}",
                    exc_info=True,
                )

        prometheus_metrics.record_auto_complete(completed, failed_batches)
        self.log_operation(
            "auto_complete_sessions",
            checked=len(candidates),
            completed=completed,
            failed_batches=failed_batches,
            cutoff=cutoff.isoformat(),
        )
        return {
            "checked": len(candidates),
            "completed": completed,
            "failed_batches": failed_batches,
            "cutoff": cutoff,
        }
