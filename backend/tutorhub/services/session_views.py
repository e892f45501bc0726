"""
Role-scoped session listings.

Each role sees a different slice of the sessions table. The view object is
picked once per request from the caller's role.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.enums import RoleName
from ..core.exceptions import ForbiddenException, ValidationException
from ..core.time_utils import utc_now
from ..models.tutoring_session import SessionStatus, TutoringSession
from ..models.user import User
from ..repositories import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)

MAX_LIST_LIMIT = 200


class SessionView(BaseService):
    """Shared filtering; subclasses decide whose sessions are visible."""

    def __init__(self, db: Session, user: User):
        super().__init__(db)
        self.user = user
        self.repository = RepositoryFactory.create_session_repository(db)

    def _scope(self) -> dict:
        raise NotImplementedError

    @BaseService.measure_operation("list_sessions")
    def list_sessions(
        self,
        status: Optional[str] = None,
        upcoming_only: bool = False,
        limit: int = 50,
    ) -> List[TutoringSession]:
        """
        List visible sessions.

        Upcoming listings are ordered soonest first, others newest first.
        """
        if status is not None:
            try:
                status = SessionStatus(status).value
            except ValueError:
                raise ValidationException(f"Unknown session status: {status}", code="INVALID_STATUS")
        limit = max(1, min(int(limit), MAX_LIST_LIMIT))
        return self.repository.list_sessions(
            status=status,
            starting_after=utc_now() if upcoming_only else None,
            limit=limit,
            **self._scope(),
        )


class StudentSessionView(SessionView):
    def _scope(self) -> dict:
        return {"student_id": self.user.id}


class TutorSessionView(SessionView):
    def __init__(self, db: Session, user: User):
        super().__init__(db, user)
        self.tutor_repository = RepositoryFactory.create_tutor_profile_repository(db)

    def _scope(self) -> dict:
        profile = self.tutor_repository.get_by_user_id(self.user.id)
        if profile is None:
            raise ForbiddenException("Tutor profile required", code="TUTOR_PROFILE_REQUIRED")
        return {"tutor_id": profile.id}


class AdminSessionView(SessionView):
    def _scope(self) -> dict:
        return {}


_VIEWS = {
    RoleName.STUDENT.value: StudentSessionView,
    RoleName.TUTOR.value: TutorSessionView,
    RoleName.ADMIN.value: AdminSessionView,
}


def session_view_for(db: Session, user: User) -> SessionView:
    view_cls = _VIEWS.get(user.role)
    if view_cls is None:
        raise ForbiddenException(f"Role {user.role!r} cannot list sessions")
    return view_cls(db, user)
