# backend/tests/services/test_session_lifecycle_service.py
"""
Session state machine and the auto-completion sweep.
"""

from unittest.mock import patch

import pytest

from tutorhub.core.exceptions import (
    BookingConflictException,
    ForbiddenException,
    InvalidStatusTransitionException,
    NotFoundException,
    RepositoryException,
    ValidationException,
)
from tutorhub.models import Notification, SessionStatus, TutoringSession
from tutorhub.services import session_lifecycle_service
from tutorhub.services.session_lifecycle_service import SessionLifecycleService


@pytest.fixture
def lifecycle_service(db):
    return SessionLifecycleService(db)


class TestGetSessionForUser:
    def test_participants_and_admin_can_read(
        self, lifecycle_service, make_session, test_student, test_tutor, test_admin, next_monday, at_utc
    ):
        session = make_session(at_utc(next_monday, 9))
        for user in (test_student, test_tutor, test_admin):
            assert lifecycle_service.get_session_for_user(session.id, user).id == session.id

    def test_outsider_is_forbidden(self, lifecycle_service, make_session, other_student, next_monday, at_utc):
        session = make_session(at_utc(next_monday, 9))
        with pytest.raises(ForbiddenException):
            lifecycle_service.get_session_for_user(session.id, other_student)

    def test_unknown_session(self, lifecycle_service, test_student):
        with pytest.raises(NotFoundException) as exc_info:
            lifecycle_service.get_session_for_user("missing", test_student)
        assert exc_info.value.code == "SESSION_NOT_FOUND"


class TestSetStatus:
    def test_student_cancels(self, db, lifecycle_service, make_session, test_student, test_tutor, next_monday, at_utc):
        session = make_session(at_utc(next_monday, 9))

        updated = lifecycle_service.set_status(session.id, "cancelled", test_student)

        assert updated.status == SessionStatus.CANCELLED.value
        assert updated.cancelled_by_id == test_student.id
        assert updated.cancelled_at is not None

        inbox = db.query(Notification).filter_by(user_id=test_tutor.id).all()
        assert [n.type for n in inbox] == ["session_status_changed"]
        assert inbox[0].data["previous_status"] == "scheduled"
        assert db.query(Notification).filter_by(user_id=test_student.id).count() == 0

    def test_full_happy_path(self, lifecycle_service, make_session, test_tutor, next_monday, at_utc):
        session = make_session(at_utc(next_monday, 9), status="pending")

        assert lifecycle_service.set_status(session.id, "scheduled", test_tutor).status == "scheduled"
        assert lifecycle_service.set_status(session.id, "in_progress", test_tutor).status == "in_progress"
        completed = lifecycle_service.set_status(session.id, SessionStatus.COMPLETED, test_tutor)

        assert completed.status == "completed"
        assert completed.completed_at is not None

    def test_admin_change_notifies_both_parties(
        self, db, lifecycle_service, make_session, test_student, test_tutor, test_admin, next_monday, at_utc
    ):
        session = make_session(at_utc(next_monday, 9))
        lifecycle_service.set_status(session.id, "in_progress", test_admin)
        recipients = {n.user_id for n in db.query(Notification).all()}
        assert recipients == {test_student.id, test_tutor.id}

    @pytest.mark.parametrize(
        "start_status,requested",
        [
            ("pending", "completed"),
            ("pending", "in_progress"),
            ("scheduled", "pending"),
            ("in_progress", "cancelled"),
            ("completed", "scheduled"),
            ("cancelled", "scheduled"),
        ],
    )
    def test_invalid_transition(
        self, db, lifecycle_service, make_session, test_tutor, next_monday, at_utc, start_status, requested
    ):
        session = make_session(at_utc(next_monday, 9), status=start_status)

        with pytest.raises(InvalidStatusTransitionException) as exc_info:
            lifecycle_service.set_status(session.id, requested, test_tutor)

        assert exc_info.value.status_code == 409
        assert exc_info.value.details == {"current_status": start_status, "requested_status": requested}
        db.expire_all()
        assert db.query(TutoringSession).filter_by(id=session.id).one().status == start_status

    def test_unknown_status_value(self, lifecycle_service, make_session, test_tutor, next_monday, at_utc):
        session = make_session(at_utc(next_monday, 9))
        with pytest.raises(ValidationException):
            lifecycle_service.set_status(session.id, "archived", test_tutor)

    def test_outsider_cannot_change(self, lifecycle_service, make_session, other_student, next_monday, at_utc):
        session = make_session(at_utc(next_monday, 9))
        with pytest.raises(ForbiddenException):
            lifecycle_service.set_status(session.id, "cancelled", other_student)

    def test_confirm_rechecks_conflicts(
        self, db, lifecycle_service, make_session, other_student, test_tutor, next_monday, at_utc
    ):
        make_session(at_utc(next_monday, 9), status="scheduled")
        pending = make_session(at_utc(next_monday, 9, 30), status="pending", student=other_student)

        with pytest.raises(BookingConflictException):
            lifecycle_service.set_status(pending.id, "scheduled", test_tutor)

        db.expire_all()
        assert db.query(TutoringSession).filter_by(id=pending.id).one().status == "pending"

    def test_confirm_without_overlap(self, lifecycle_service, make_session, test_tutor, next_monday, at_utc):
        make_session(at_utc(next_monday, 9), status="scheduled")
        pending = make_session(at_utc(next_monday, 10), status="pending")
        assert lifecycle_service.set_status(pending.id, "scheduled", test_tutor).status == "scheduled"


class TestAutoComplete:
    @pytest.fixture
    def sweep_rows(self, make_session, next_monday, at_utc):
        return {
            "ended": make_session(at_utc(next_monday, 9), 60),
            "ended_in_progress": make_session(at_utc(next_monday, 10), 120, status="in_progress"),
            "running": make_session(at_utc(next_monday, 11, 30), 60),
            "ended_pending": make_session(at_utc(next_monday, 9), 60, status="pending"),
            "future": make_session(at_utc(next_monday, 13), 60),
        }

    def _statuses(self, db):
        db.expire_all()
        return {s.id: s.status for s in db.query(TutoringSession).all()}

    def test_completes_only_ended_active_sessions(self, db, lifecycle_service, sweep_rows, next_monday, at_utc):
        cutoff = at_utc(next_monday, 12)

        result = lifecycle_service.auto_complete_sessions(cutoff)

        assert result == {"checked": 3, "completed": 2, "failed_batches": 0, "cutoff": cutoff}
        statuses = self._statuses(db)
        assert statuses[sweep_rows["ended"].id] == "completed"
        assert statuses[sweep_rows["ended_in_progress"].id] == "completed"
        assert statuses[sweep_rows["running"].id] == "scheduled"
        assert statuses[sweep_rows["ended_pending"].id] == "pending"
        assert statuses[sweep_rows["future"].id] == "scheduled"

        completed_at = db.query(TutoringSession).filter_by(id=sweep_rows["ended"].id).one().completed_at
        assert completed_at is not None

    def test_second_run_is_a_no_op(self, lifecycle_service, sweep_rows, next_monday, at_utc):
        cutoff = at_utc(next_monday, 12)
        lifecycle_service.auto_complete_sessions(cutoff)

        again = lifecycle_service.auto_complete_sessions(cutoff)

        assert again["completed"] == 0
        assert again["checked"] == 1

    def test_small_batches(self, lifecycle_service, sweep_rows, next_monday, at_utc):
        result = lifecycle_service.auto_complete_sessions(at_utc(next_monday, 12), batch_size=1)
        assert result["completed"] == 2
        assert result["failed_batches"] == 0

    def test_batch_size_is_capped(self, monkeypatch, lifecycle_service, sweep_rows, next_monday, at_utc):
        monkeypatch.setattr(session_lifecycle_service, "MAX_AUTO_COMPLETE_BATCH_SIZE", 1)
        with patch.object(
            lifecycle_service.repository,
            "mark_completed",
            wraps=lifecycle_service.repository.mark_completed,
        ) as mark_completed:
            result = lifecycle_service.auto_complete_sessions(at_utc(next_monday, 12), batch_size=100)

        assert [len(c.args[0]) for c in mark_completed.call_args_list] == [1, 1]
        assert result["completed"] == 2

    def test_failed_batch_is_counted_and_skipped(self, lifecycle_service, sweep_rows, next_monday, at_utc):
        with patch.object(
            lifecycle_service.repository,
            "mark_completed",
            side_effect=[RepositoryException("connection reset"), 1],
        ) as mark_completed:
            result = lifecycle_service.auto_complete_sessions(at_utc(next_monday, 12), batch_size=1)

        assert mark_completed.call_count == 2
        assert result["failed_batches"] == 1
        assert result["completed"] == 1

    def test_nothing_due(self, lifecycle_service, tutor_profile, next_monday, at_utc):
        result = lifecycle_service.auto_complete_sessions(at_utc(next_monday, 12))
        assert result["checked"] == 0
        assert result["completed"] == 0
