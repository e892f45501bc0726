# backend/tutorhub/services/booking_service.py
"""
Booking Service for TutorHub

Handles session booking. A booking is only committed when, under the
tutor-day lock, the requested interval:
- falls on a weekday the tutor has opened
- lies inside that day's availability window
- overlaps no scheduled or in-progress session

Slot listings are advisory; everything is re-checked here.
"""

from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
import logging
from typing import Any, Dict, Optional, Tuple

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.constants import CENTS_PER_UNIT, MINUTES_PER_HOUR
from ..core.exceptions import (
    BookingConflictException,
    DayUnavailableException,
    ForbiddenException,
    NotFoundException,
    OutsideAvailabilityWindowException,
    ValidationException,
)
from ..core.time_utils import day_key_of, format_clock, localize, utc_now
from ..models.subject import Subject
from ..models.tutor_profile import TutorProfile
from ..models.tutoring_session import TutoringSession
from ..models.user import User
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories import RepositoryFactory
from ..repositories.tutor_day_lock_repository import is_lock_contention_error
from .availability_resolver import day_window, profile_timezone
from .base import BaseService
from .conflict_checker import ConflictChecker
from .notification_service import NotificationService

logger = logging.getLogger(__name__)

GENERIC_CONFLICT_MESSAGE = "This time slot is already booked"


def compute_price_cents(hourly_rate: Any, duration_minutes: int) -> int:
    """round(hourly_rate x duration / 60 x 100), half up."""
    rate = Decimal(str(hourly_rate or 0))
    cents = rate * Decimal(duration_minutes) * CENTS_PER_UNIT / MINUTES_PER_HOUR
    return int(cents.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class BookingService(BaseService):
    """
    Service layer for booking tutoring sessions.

    Owns the check-and-insert transaction; relies on ConflictChecker for
    overlap detection and NotificationService for best-effort notices.
    """

    def __init__(
        self,
        db: Session,
        notification_service: Optional[NotificationService] = None,
        conflict_checker: Optional[ConflictChecker] = None,
    ):
        super().__init__(db)
        self.repository = RepositoryFactory.create_session_repository(db)
        self.tutor_repository = RepositoryFactory.create_tutor_profile_repository(db)
        self.subject_repository = RepositoryFactory.create_base_repository(db, Subject)
        self.lock_repository = RepositoryFactory.create_tutor_day_lock_repository(db)
        self.conflict_checker = conflict_checker or ConflictChecker(db, self.repository)
        self.notification_service = notification_service or NotificationService(db)

    @BaseService.measure_operation("book_session")
    def book_session(
        self,
        student: User,
        tutor_ref: str,
        subject_id: str,
        scheduled_at: datetime,
        duration_minutes: int,
        notes: Optional[str] = None,
        *,
        now: Optional[datetime] = None,
    ) -> TutoringSession:
        """
        Book a session for a student.

        Args:
            student: The student booking
            tutor_ref: Tutor profile id or tutor user id
            subject_id: Subject to be taught
            scheduled_at: Aware start instant
            duration_minutes: Multiple of 15 between 15 and 240
            notes: Optional note from the student
            now: Reference instant for the future-start check

        Returns:
            Persisted session

        Raises:
            ForbiddenException: Caller is not a student
            ValidationException: Malformed instant or duration
            NotFoundException: Unknown tutor or subject
            DayUnavailableException: Weekday closed
            OutsideAvailabilityWindowException: Interval not inside the window
            BookingConflictException: Interval overlaps a blocking session
        """
        self.log_operation(
            "book_session",
            student_id=student.id,
            tutor_ref=tutor_ref,
            scheduled_at=scheduled_at.isoformat() if scheduled_at else None,
            duration_minutes=duration_minutes,
        )

        # 1. Role
        if not student.is_student:
            prometheus_metrics.record_booking_attempt("forbidden")
            raise ForbiddenException("Only students can book sessions")

        # 2. Input shape
        self._validate_request(scheduled_at, duration_minutes, now or utc_now())

        # 3. Load tutor and subject
        profile, subject = self._load_prerequisites(tutor_ref, subject_id)

        zone = profile_timezone(profile)
        local_start = scheduled_at.astimezone(zone)
        target_date = local_start.date()
        ends_at = scheduled_at + timedelta(minutes=duration_minutes)

        # 4. Check-and-insert under the tutor-day lock
        try:
            with self.repository.transaction():
                self.lock_repository.acquire(profile.id, target_date)
                self._check_availability(profile, target_date, scheduled_at, ends_at)
                self._check_conflicts(profile, scheduled_at, ends_at, student.id)
                session = self._create_session_record(
                    student, profile, subject, scheduled_at, duration_minutes, notes
                )
        except IntegrityError as exc:
            prometheus_metrics.record_booking_attempt("conflict")
            raise BookingConflictException(
                message=GENERIC_CONFLICT_MESSAGE,
                details=self._build_conflict_details(profile.id, scheduled_at, ends_at),
            ) from exc
        except OperationalError as exc:
            if is_lock_contention_error(exc):
                prometheus_metrics.record_booking_attempt("conflict")
                raise BookingConflictException(
                    message=GENERIC_CONFLICT_MESSAGE,
                    details=self._build_conflict_details(profile.id, scheduled_at, ends_at),
                ) from exc
            raise

        prometheus_metrics.record_booking_attempt("booked")

        # 5. Post-commit notices
        self._handle_post_booking_tasks(session, profile)
        return session

    def _validate_request(
        self, scheduled_at: datetime, duration_minutes: int, now: datetime
    ) -> None:
        if scheduled_at is None or scheduled_at.tzinfo is None:
            raise ValidationException(
                "scheduled_at must be a timezone-aware datetime", code="INVALID_SCHEDULED_AT"
            )
        increment = settings.session_duration_increment_minutes
        if (
            not isinstance(duration_minutes, int)
            or isinstance(duration_minutes, bool)
            or duration_minutes < increment
            or duration_minutes > settings.max_session_duration_minutes
            or duration_minutes % increment != 0
        ):
            raise ValidationException(
                f"Duration must be a multiple of {increment} minutes between "
                f"{increment} and {settings.max_session_duration_minutes}",
                code="INVALID_DURATION",
                details={"duration": duration_minutes},
            )
        if scheduled_at <= now:
            raise ValidationException(
                "Sessions must be booked in the future", code="SCHEDULED_IN_PAST"
            )

    def _load_prerequisites(self, tutor_ref: str, subject_id: str) -> Tuple[TutorProfile, Subject]:
        """
        Resolve the tutor (profile id first, then user id) and the subject.

        Raises:
            NotFoundException: If either is missing or the profile is inactive
        """
        profile = self.tutor_repository.resolve(tutor_ref)
        if profile is None or not profile.is_active:
            prometheus_metrics.record_booking_attempt("not_found")
            raise NotFoundException("Tutor not found", code="TUTOR_NOT_FOUND")

        subject = self.subject_repository.get_by_id(subject_id)
        if subject is None:
            prometheus_metrics.record_booking_attempt("not_found")
            raise NotFoundException("Subject not found", code="SUBJECT_NOT_FOUND")
        return profile, subject

    def _check_availability(
        self, profile: TutorProfile, target_date: date, starts_at: datetime, ends_at: datetime
    ) -> None:
        window = day_window(profile.availability, target_date)
        if window is None:
            prometheus_metrics.record_booking_attempt("day_unavailable")
            raise DayUnavailableException(day_key_of(target_date).value)

        zone = profile_timezone(profile)
        opens_at = localize(target_date, window[0], zone)
        closes_at = localize(target_date, window[1], zone)
        if not (opens_at <= starts_at and ends_at <= closes_at):
            prometheus_metrics.record_booking_attempt("outside_window")
            raise OutsideAvailabilityWindowException(
                window=f"{format_clock(*window[0])}-{format_clock(*window[1])}",
                requested=(
                    f"{starts_at.astimezone(zone).strftime('%H:%M')}-"
                    f"{ends_at.astimezone(zone).strftime('%H:%M')}"
                ),
            )

    def _check_conflicts(
        self, profile: TutorProfile, starts_at: datetime, ends_at: datetime, student_id: str
    ) -> None:
        conflicts = self.conflict_checker.find_conflicts(profile.id, starts_at, ends_at)
        if conflicts:
            prometheus_metrics.record_booking_attempt("conflict")
            details = self._build_conflict_details(profile.id, starts_at, ends_at)
            details["conflicting_session_ids"] = [c.id for c in conflicts]
            raise BookingConflictException(message=GENERIC_CONFLICT_MESSAGE, details=details)

    def _create_session_record(
        self,
        student: User,
        profile: TutorProfile,
        subject: Subject,
        scheduled_at: datetime,
        duration_minutes: int,
        notes: Optional[str],
    ) -> TutoringSession:
        return self.repository.create(
            tutor_id=profile.id,
            student_id=student.id,
            subject_id=subject.id,
            scheduled_at=scheduled_at,
            duration_minutes=duration_minutes,
            status=settings.initial_session_status,
            price_cents=compute_price_cents(profile.hourly_rate, duration_minutes),
            notes=notes,
        )

    def _handle_post_booking_tasks(self, session: TutoringSession, profile: TutorProfile) -> None:
        """Notify the tutor; failures are logged and never undo the booking."""
        try:
            self.notification_service.notify_session_requested(session, profile.user_id)
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to send session request notification for {session.id}: {str(e)}")

    @staticmethod
    def _build_conflict_details(
        tutor_id: str, starts_at: datetime, ends_at: datetime
    ) -> Dict[str, Any]:
        return {
            "tutor_id": tutor_id,
            "scheduled_at": starts_at.isoformat(),
            "ends_at": ends_at.isoformat(),
        }
