# backend/tutorhub/schemas/availability.py
"""
Availability schemas for TutorHub.

A tutor's weekly availability is a document keyed by weekday. Each day
carries an open flag and a single HH:MM window. The wire format keeps the
camelCase keys clients already send (isAvailable, startTime, endTime).
"""

import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field, model_validator

from ..core.constants import DAY_KEYS
from ..core.time_utils import minutes_of, parse_clock_time
from ._strict_base import StrictRequestModel
from .base import StandardizedModel

CLOCK_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class DayAvailability(StrictRequestModel):
    """One weekday's window."""

    is_available: bool = Field(False, alias="isAvailable")
    start_time: Optional[str] = Field(None, alias="startTime", pattern=CLOCK_PATTERN)
    end_time: Optional[str] = Field(None, alias="endTime", pattern=CLOCK_PATTERN)

    @model_validator(mode="after")
    def _validate_window(self) -> "DayAvailability":
        if not self.is_available:
            return self
        if not self.start_time or not self.end_time:
            raise ValueError("startTime and endTime are required when the day is available")
        parse_clock_time(self.start_time, self.start_time)
        parse_clock_time(self.end_time, self.end_time)
        if minutes_of(self.start_time) >= minutes_of(self.end_time):
            raise ValueError("startTime must be before endTime")
        return self


class WeeklyAvailability(StrictRequestModel):
    """
    Full weekly availability document.

    Unknown day keys are rejected. Missing days are treated as closed.
    """

    monday: Optional[DayAvailability] = None
    tuesday: Optional[DayAvailability] = None
    wednesday: Optional[DayAvailability] = None
    thursday: Optional[DayAvailability] = None
    friday: Optional[DayAvailability] = None
    saturday: Optional[DayAvailability] = None
    sunday: Optional[DayAvailability] = None

    def to_document(self) -> Dict[str, Dict[str, Any]]:
        """Serialize to the stored JSON shape, omitting missing days."""
        document: Dict[str, Dict[str, Any]] = {}
        for day_key in DAY_KEYS:
            day = getattr(self, day_key)
            if day is not None:
                document[day_key] = day.model_dump(by_alias=True, exclude_none=True)
        return document


class WeeklyAvailabilityResponse(StandardizedModel):
    tutor_id: str
    timezone: str
    availability: Dict[str, Dict[str, Any]]


class SlotResponse(StandardizedModel):
    """Derived bookable slot; never persisted."""

    start: str = Field(..., description="Local wall-clock start, HH:MM")
    end: str = Field(..., description="Local wall-clock end, HH:MM")
    available: bool
    at: datetime.datetime = Field(..., description="Absolute start instant")


class DaySlotsResponse(StandardizedModel):
    tutor_id: str
    date: datetime.date
    step: int
    timezone: str
    slots: List[SlotResponse]
