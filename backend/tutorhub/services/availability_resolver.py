# backend/tutorhub/services/availability_resolver.py
"""
Availability resolution for TutorHub.

Turns a tutor's weekly availability document into concrete slots for one
calendar date, then removes the slots taken by existing sessions.

Stored documents are validated strictly when written. Reads parse leniently
so rows written before validation existed still produce a grid.
"""

from datetime import date, datetime
import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple

import pytz
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import NotFoundException
from ..core.time_utils import (
    TzLike,
    clamp_step,
    day_key_of,
    generate_slot_grid,
    get_timezone,
    localize,
    parse_clock_time,
    utc_now,
)
from ..models.tutor_profile import TutorProfile
from ..repositories import RepositoryFactory
from .base import BaseService
from .conflict_checker import ConflictChecker, filter_conflicts

logger = logging.getLogger(__name__)


def day_window(
    availability: Optional[Mapping[str, Any]], target_date: date
) -> Optional[Tuple[Tuple[int, int], Tuple[int, int]]]:
    """
    Return the (open, close) clock pair for a date, or None when closed.

    Missing start or end times fall back to the configured defaults.
    """
    day = (availability or {}).get(day_key_of(target_date).value)
    if not day or not day.get("isAvailable"):
        return None
    open_at = parse_clock_time(day.get("startTime"), settings.default_open_time, strict=False)
    close_at = parse_clock_time(day.get("endTime"), settings.default_close_time, strict=False)
    return open_at, close_at


def resolve_day_slots(
    availability: Optional[Mapping[str, Any]],
    target_date: date,
    step_minutes: int = 60,
    *,
    tz: Optional[TzLike] = None,
    now: Optional[datetime] = None,
) -> List[Dict[str, Any]]:
    """
    Generate the slot grid for one date from a weekly availability document.

    Args:
        availability: Weekly document keyed by day
        target_date: Local calendar date in the tutor's zone
        step_minutes: Slot length
        tz: Tutor's timezone
        now: Reference instant; slots starting at or before it are unavailable

    Returns:
        Slots ordered by start; empty when the day is closed or missing
    """
    window = day_window(availability, target_date)
    if window is None:
        return []

    zone = get_timezone(tz)
    reference = now or utc_now()
    slots: List[Dict[str, Any]] = []
    for cell in generate_slot_grid(window[0], window[1], step_minutes):
        starts_at = localize(target_date, parse_clock_time(cell["start"], cell["start"]), zone)
        slots.append(
            {
                "start": cell["start"],
                "end": cell["end"],
                "available": starts_at > reference,
                "at": starts_at,
            }
        )
    return slots


def profile_timezone(profile: TutorProfile) -> pytz.BaseTzInfo:
    return get_timezone(profile.timezone or settings.default_timezone)


class AvailabilityService(BaseService):
    """
    Read side of tutor availability: bookable slots for a date.

    Slot listing is advisory. Booking re-validates everything under the
    tutor-day lock.
    """

    def __init__(self, db: Session, conflict_checker: Optional[ConflictChecker] = None):
        super().__init__(db)
        self.tutor_repository = RepositoryFactory.create_tutor_profile_repository(db)
        self.conflict_checker = conflict_checker or ConflictChecker(db)

    def resolve_tutor(self, tutor_ref: str) -> TutorProfile:
        profile = self.tutor_repository.resolve(tutor_ref)
        if profile is None or not profile.is_active:
            raise NotFoundException("Tutor not found", code="TUTOR_NOT_FOUND")
        return profile

    @BaseService.measure_operation("get_day_slots")
    def get_day_slots(
        self,
        tutor_ref: str,
        target_date: date,
        step: Optional[int] = None,
        *,
        now: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """
        Slots for one tutor on one local date, with booked slots marked unavailable.

        Returns:
            Dict with tutor_id, date, step, timezone and slots
        """
        profile = self.resolve_tutor(tutor_ref)
        step_minutes = clamp_step(
            step,
            settings.default_slot_step_minutes,
            minimum=settings.min_slot_step_minutes,
            maximum=settings.max_slot_step_minutes,
        )
        zone = profile_timezone(profile)

        slots = resolve_day_slots(
            profile.availability, target_date, step_minutes, tz=zone, now=now
        )
        if slots:
            booked = self.conflict_checker.get_booked_sessions_for_day(
                profile.id, target_date, zone
            )
            slots = filter_conflicts(slots, booked)

        self.log_operation(
            "get_day_slots",
            tutor_id=profile.id,
            target_date=target_date.isoformat(),
            slot_count=len(slots),
        )
        return {
            "tutor_id": profile.id,
            "date": target_date,
            "step": step_minutes,
            "timezone": zone.zone,
            "slots": slots,
        }
