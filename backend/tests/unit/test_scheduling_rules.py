from decimal import Decimal

from pydantic import ValidationError
import pytest

from tutorhub.core.exceptions import (
    BookingConflictException,
    DayUnavailableException,
    InvalidStatusTransitionException,
    NotFoundException,
    ValidationException,
)
from tutorhub.models.tutoring_session import SessionStatus
from tutorhub.schemas.availability import DayAvailability, WeeklyAvailability
from tutorhub.services.booking_service import compute_price_cents
from tutorhub.services.session_lifecycle_service import ALLOWED_TRANSITIONS, can_transition


class TestComputePrice:
    def test_hourly_rate_times_duration(self):
        assert compute_price_cents(Decimal("50.00"), 60) == 5000
        assert compute_price_cents(Decimal("50.00"), 90) == 7500

    def test_rounds_half_up(self):
        # 33.33 * 15 / 60 = 8.3325 -> 833 cents
        assert compute_price_cents(Decimal("33.33"), 15) == 833
        # 0.02 * 15 / 60 * 100 = 0.5 -> 1 cent
        assert compute_price_cents(Decimal("0.02"), 15) == 1

    def test_missing_rate_is_free(self):
        assert compute_price_cents(None, 60) == 0


class TestTransitions:
    @pytest.mark.parametrize(
        "current,requested",
        [
            ("pending", "scheduled"),
            ("pending", "cancelled"),
            ("scheduled", "in_progress"),
            ("scheduled", "cancelled"),
            ("in_progress", "completed"),
        ],
    )
    def test_allowed(self, current, requested):
        assert can_transition(current, requested)

    @pytest.mark.parametrize(
        "current,requested",
        [
            ("pending", "completed"),
            ("scheduled", "pending"),
            ("in_progress", "cancelled"),
            ("completed", "scheduled"),
            ("cancelled", "scheduled"),
            ("scheduled", "scheduled"),
        ],
    )
    def test_rejected(self, current, requested):
        assert not can_transition(current, requested)

    def test_terminal_states_have_no_exits(self):
        assert ALLOWED_TRANSITIONS[SessionStatus.COMPLETED.value] == frozenset()
        assert ALLOWED_TRANSITIONS[SessionStatus.CANCELLED.value] == frozenset()

    def test_every_status_is_covered(self):
        assert set(ALLOWED_TRANSITIONS) == {s.value for s in SessionStatus}


class TestAvailabilitySchemas:
    def test_closed_day_needs_no_times(self):
        day = DayAvailability(isAvailable=False)
        assert day.is_available is False

    def test_open_day_requires_ordered_window(self):
        with pytest.raises(ValidationError):
            DayAvailability(isAvailable=True, startTime="17:00", endTime="09:00")
        with pytest.raises(ValidationError):
            DayAvailability(isAvailable=True, startTime="09:00", endTime="09:00")

    def test_open_day_requires_both_times(self):
        with pytest.raises(ValidationError):
            DayAvailability(isAvailable=True, startTime="09:00")

    def test_rejects_malformed_clock(self):
        with pytest.raises(ValidationError):
            DayAvailability(isAvailable=True, startTime="9:00", endTime="17:00")
        with pytest.raises(ValidationError):
            DayAvailability(isAvailable=True, startTime="09:00", endTime="24:00")

    def test_rejects_unknown_day_key(self):
        with pytest.raises(ValidationError):
            WeeklyAvailability.model_validate({"funday": {"isAvailable": False}})

    def test_document_keeps_wire_keys(self):
        weekly = WeeklyAvailability.model_validate(
            {
                "monday": {"isAvailable": True, "startTime": "08:00", "endTime": "12:00"},
                "sunday": {"isAvailable": False},
            }
        )
        assert weekly.to_document() == {
            "monday": {"isAvailable": True, "startTime": "08:00", "endTime": "12:00"},
            "sunday": {"isAvailable": False},
        }


class TestExceptions:
    def test_http_mapping(self):
        assert NotFoundException("x").to_http_exception().status_code == 404
        assert ValidationException("x").to_http_exception().status_code == 422
        assert BookingConflictException().to_http_exception().status_code == 409
        assert InvalidStatusTransitionException("pending", "completed").status_code == 409

    def test_detail_carries_code_and_kind(self):
        detail = DayUnavailableException("saturday").to_http_exception().detail
        assert detail["code"] == "DAY_UNAVAILABLE"
        assert detail["kind"] == "Conflict"
        assert detail["details"] == {"day": "saturday"}
        assert detail["message"] == "Tutor is not available this day"

    def test_default_code_is_class_name(self):
        assert NotFoundException("missing").code == "NotFoundException"
