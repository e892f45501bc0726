# backend/tests/services/test_booking_service.py
"""
BookingService against a real (in-memory) database.

Covers the ordered checks: role, input shape, tutor and subject lookup,
day open, window containment, conflicts. Then persistence and the
best-effort tutor notification.
"""

from datetime import datetime, time, timedelta, timezone
from unittest.mock import Mock

import pytest
import pytz

from tutorhub.core.config import settings
from tutorhub.core.exceptions import (
    BookingConflictException,
    DayUnavailableException,
    ForbiddenException,
    NotFoundException,
    OutsideAvailabilityWindowException,
    ValidationException,
)
from tutorhub.models import Notification, TutorDayLock, TutoringSession
from tutorhub.services.booking_service import BookingService


@pytest.fixture
def booking_service(db):
    return BookingService(db)


class TestBookSessionSuccess:
    def test_books_open_slot(self, db, booking_service, test_student, tutor_profile, subject, next_monday, at_utc):
        session = booking_service.book_session(
            test_student, tutor_profile.id, subject.id, at_utc(next_monday, 9), 60, "Quadratics"
        )

        assert session.id
        assert session.status == "scheduled"
        assert session.tutor_id == tutor_profile.id
        assert session.student_id == test_student.id
        assert session.duration_minutes == 60
        assert session.price_cents == 5000
        assert session.notes == "Quadratics"

        stored = db.query(TutoringSession).filter_by(id=session.id).one()
        assert stored.scheduled_at == at_utc(next_monday, 9)

    def test_price_snapshot_scales_with_duration(
        self, booking_service, test_student, tutor_profile, subject, next_monday, at_utc
    ):
        session = booking_service.book_session(
            test_student, tutor_profile.id, subject.id, at_utc(next_monday, 13), 90
        )
        assert session.price_cents == 7500

    def test_tutor_can_be_referenced_by_user_id(
        self, booking_service, test_student, test_tutor, tutor_profile, subject, next_monday, at_utc
    ):
        session = booking_service.book_session(
            test_student, test_tutor.id, subject.id, at_utc(next_monday, 9), 60
        )
        assert session.tutor_id == tutor_profile.id

    def test_adjacent_session_is_allowed(
        self, booking_service, test_student, other_student, tutor_profile, subject, next_monday, at_utc
    ):
        booking_service.book_session(test_student, tutor_profile.id, subject.id, at_utc(next_monday, 9), 60)
        second = booking_service.book_session(
            other_student, tutor_profile.id, subject.id, at_utc(next_monday, 10), 60
        )
        assert second.status == "scheduled"

    def test_window_edges_are_bookable(
        self, booking_service, test_student, tutor_profile, subject, next_monday, at_utc
    ):
        first = booking_service.book_session(
            test_student, tutor_profile.id, subject.id, at_utc(next_monday, 9), 15
        )
        last = booking_service.book_session(
            test_student, tutor_profile.id, subject.id, at_utc(next_monday, 16), 60
        )
        assert first.id != last.id

    def test_notifies_tutor(self, db, booking_service, test_student, test_tutor, tutor_profile, subject, next_monday, at_utc):
        session = booking_service.book_session(
            test_student, tutor_profile.id, subject.id, at_utc(next_monday, 9), 60
        )
        notifications = db.query(Notification).filter_by(user_id=test_tutor.id).all()
        assert len(notifications) == 1
        assert notifications[0].type == "session_requested"
        assert notifications[0].data["session_id"] == session.id

    def test_notification_failure_keeps_booking(
        self, db, test_student, tutor_profile, subject, next_monday, at_utc
    ):
        notifier = Mock()
        notifier.notify_session_requested.side_effect = RuntimeError("inbox down")
        service = BookingService(db, notification_service=notifier)

        session = service.book_session(test_student, tutor_profile.id, subject.id, at_utc(next_monday, 9), 60)

        notifier.notify_session_requested.assert_called_once()
        assert db.query(TutoringSession).filter_by(id=session.id).count() == 1

    def test_tutor_local_time_window(
        self, db, booking_service, test_student, tutor_profile, subject, next_monday
    ):
        tutor_profile.timezone = "America/New_York"
        db.commit()
        eastern = pytz.timezone("America/New_York")

        starts = eastern.localize(datetime.combine(next_monday, time(9, 0)))
        session = booking_service.book_session(test_student, tutor_profile.id, subject.id, starts, 60)
        assert session.scheduled_at == starts.astimezone(timezone.utc)

        too_early = eastern.localize(datetime.combine(next_monday, time(8, 0)))
        with pytest.raises(OutsideAvailabilityWindowException):
            booking_service.book_session(test_student, tutor_profile.id, subject.id, too_early, 60)

    def test_takes_tutor_day_lock(
        self, db, booking_service, test_student, tutor_profile, subject, next_monday, at_utc
    ):
        booking_service.book_session(test_student, tutor_profile.id, subject.id, at_utc(next_monday, 9), 60)
        booking_service.book_session(test_student, tutor_profile.id, subject.id, at_utc(next_monday, 11), 60)

        rows = db.query(TutorDayLock.day, TutorDayLock.version).all()
        assert rows == [(next_monday, 2)]

    def test_initial_status_is_configurable(
        self, monkeypatch, booking_service, test_student, other_student, tutor_profile, subject, next_monday, at_utc
    ):
        monkeypatch.setattr(settings, "initial_session_status", "pending")
        first = booking_service.book_session(
            test_student, tutor_profile.id, subject.id, at_utc(next_monday, 9), 60
        )
        assert first.status == "pending"

        # Pending sessions do not reserve the interval
        second = booking_service.book_session(
            other_student, tutor_profile.id, subject.id, at_utc(next_monday, 9), 60
        )
        assert second.status == "pending"


class TestBookSessionRejections:
    def test_only_students_can_book(self, booking_service, test_tutor, tutor_profile, subject, next_monday, at_utc):
        with pytest.raises(ForbiddenException):
            booking_service.book_session(test_tutor, tutor_profile.id, subject.id, at_utc(next_monday, 9), 60)

    def test_unknown_tutor(self, booking_service, test_student, subject, next_monday, at_utc):
        with pytest.raises(NotFoundException) as exc_info:
            booking_service.book_session(test_student, "nope", subject.id, at_utc(next_monday, 9), 60)
        assert exc_info.value.code == "TUTOR_NOT_FOUND"

    def test_inactive_tutor_profile(self, db, booking_service, test_student, tutor_profile, subject, next_monday, at_utc):
        tutor_profile.is_active = False
        db.commit()
        with pytest.raises(NotFoundException):
            booking_service.book_session(test_student, tutor_profile.id, subject.id, at_utc(next_monday, 9), 60)

    def test_unknown_subject(self, booking_service, test_student, tutor_profile, next_monday, at_utc):
        with pytest.raises(NotFoundException) as exc_info:
            booking_service.book_session(test_student, tutor_profile.id, "basket-weaving", at_utc(next_monday, 9), 60)
        assert exc_info.value.code == "SUBJECT_NOT_FOUND"

    @pytest.mark.parametrize("duration", [0, 10, 20, 255, 300, -60])
    def test_invalid_durations(self, booking_service, test_student, tutor_profile, subject, next_monday, at_utc, duration):
        with pytest.raises(ValidationException) as exc_info:
            booking_service.book_session(
                test_student, tutor_profile.id, subject.id, at_utc(next_monday, 9), duration
            )
        assert exc_info.value.code == "INVALID_DURATION"

    def test_naive_start_rejected(self, booking_service, test_student, tutor_profile, subject, next_monday):
        with pytest.raises(ValidationException) as exc_info:
            booking_service.book_session(
                test_student, tutor_profile.id, subject.id, datetime.combine(next_monday, time(9)), 60
            )
        assert exc_info.value.code == "INVALID_SCHEDULED_AT"

    def test_past_start_rejected(self, booking_service, test_student, tutor_profile, subject, next_monday, at_utc):
        starts = at_utc(next_monday, 9)
        with pytest.raises(ValidationException) as exc_info:
            booking_service.book_session(
                test_student, tutor_profile.id, subject.id, starts, 60, now=starts + timedelta(minutes=1)
            )
        assert exc_info.value.code == "SCHEDULED_IN_PAST"

    def test_closed_day(self, booking_service, test_student, tutor_profile, subject, next_saturday, at_utc):
        with pytest.raises(DayUnavailableException) as exc_info:
            booking_service.book_session(test_student, tutor_profile.id, subject.id, at_utc(next_saturday, 10), 60)
        assert exc_info.value.details["day"] == "saturday"

    def test_runs_past_closing(self, booking_service, test_student, tutor_profile, subject, next_monday, at_utc):
        with pytest.raises(OutsideAvailabilityWindowException) as exc_info:
            booking_service.book_session(test_student, tutor_profile.id, subject.id, at_utc(next_monday, 16), 90)
        assert exc_info.value.details == {"window": "09:00-17:00", "requested": "16:00-17:30"}

    def test_starts_before_opening(self, booking_service, test_student, tutor_profile, subject, next_monday, at_utc):
        with pytest.raises(OutsideAvailabilityWindowException):
            booking_service.book_session(
                test_student, tutor_profile.id, subject.id, at_utc(next_monday, 8, 45), 30
            )

    def test_overlapping_booking(
        self, db, booking_service, test_student, other_student, tutor_profile, subject, next_monday, at_utc
    ):
        first = booking_service.book_session(test_student, tutor_profile.id, subject.id, at_utc(next_monday, 9), 60)

        with pytest.raises(BookingConflictException) as exc_info:
            booking_service.book_session(
                other_student, tutor_profile.id, subject.id, at_utc(next_monday, 9, 30), 60
            )

        assert exc_info.value.code == "BOOKING_CONFLICT"
        assert exc_info.value.details["conflicting_session_ids"] == [first.id]
        assert db.query(TutoringSession).count() == 1

    def test_cancelled_session_does_not_block(
        self, booking_service, make_session, test_student, tutor_profile, subject, next_monday, at_utc
    ):
        make_session(at_utc(next_monday, 9), status="cancelled")
        session = booking_service.book_session(
            test_student, tutor_profile.id, subject.id, at_utc(next_monday, 9), 60
        )
        assert session.status == "scheduled"

    def test_in_progress_session_blocks(
        self, booking_service, make_session, test_student, tutor_profile, subject, next_monday, at_utc
    ):
        make_session(at_utc(next_monday, 9), duration_minutes=120, status="in_progress")
        with pytest.raises(BookingConflictException):
            booking_service.book_session(
                test_student, tutor_profile.id, subject.id, at_utc(next_monday, 10, 30), 30
            )
