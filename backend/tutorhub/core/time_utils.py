"""
Time utilities for TutorHub scheduling.

Pure helpers for weekday keys, wall-clock parsing, slot grids and
interval arithmetic. Nothing here touches the database.
"""

from __future__ import annotations

from datetime import date, datetime, time
from typing import Iterator, Optional, Tuple, TypedDict, Union

import pytz

from .constants import DAY_KEYS
from .enums import DayKey

MIN_STEP_MINUTES = 15
MAX_STEP_MINUTES = 240

TzLike = Union[str, pytz.BaseTzInfo]


class ClockWindow(TypedDict):
    start: str
    end: str


def get_timezone(tz: Optional[TzLike]) -> pytz.BaseTzInfo:
    """Return a pytz timezone from a name or timezone object (UTC when empty)."""
    if tz is None or tz == "":
        return pytz.UTC
    if isinstance(tz, str):
        return pytz.timezone(tz)
    return tz


def day_key_of(target_date: date) -> DayKey:
    """Map a local calendar date to its weekday key."""
    return DayKey(DAY_KEYS[target_date.weekday()])


def _lenient_int(raw: str) -> int:
    try:
        return int(raw.strip())
    except (TypeError, ValueError):
        return 0


def parse_clock_time(
    hhmm: Optional[str], fallback: str, *, strict: bool = True
) -> Tuple[int, int]:
    """
    Parse an "HH:MM" wall-clock string into (hour, minute).

    ``fallback`` is used when the input is missing or empty.

    Args:
        hhmm: Clock string, may be None
        fallback: Clock string used when ``hhmm`` is empty
        strict: When False, clamp hour to [0, 23] and minute to [0, 59] and
            coerce unparsable parts to 0 instead of raising

    Raises:
        ValueError: In strict mode, when the value is malformed or out of range
    """
    raw = hhmm if hhmm else fallback
    if not isinstance(raw, str):
        if strict:
            raise ValueError(f"Invalid clock time: {raw!r}")
        raw = str(raw)

    parts = raw.split(":")
    if not strict:
        hour = _lenient_int(parts[0]) if parts else 0
        minute = _lenient_int(parts[1]) if len(parts) > 1 else 0
        return min(max(hour, 0), 23), min(max(minute, 0), 59)

    if len(parts) != 2 or not all(p.strip().isdigit() for p in parts):
        raise ValueError(f"Invalid clock time: {raw!r}")
    hour, minute = int(parts[0]), int(parts[1])
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        raise ValueError(f"Clock time out of range: {raw!r}")
    return hour, minute


def format_clock(hour: int, minute: int) -> str:
    return f"{hour:02d}:{minute:02d}"


def minutes_of(hhmm: str) -> int:
    """Minutes since midnight for a strict "HH:MM" string."""
    hour, minute = parse_clock_time(hhmm, hhmm)
    return hour * 60 + minute


def generate_slot_grid(
    start: Tuple[int, int], end: Tuple[int, int], step_minutes: int
) -> Iterator[ClockWindow]:
    """
    Yield contiguous, non-overlapping windows of ``step_minutes`` in [start, end).

    A trailing window that would cross ``end`` is dropped. Calling the function
    again yields the same sequence.
    """
    if step_minutes <= 0:
        raise ValueError("step_minutes must be positive")

    cursor = start[0] * 60 + start[1]
    limit = end[0] * 60 + end[1]
    while cursor + step_minutes <= limit:
        nxt = cursor + step_minutes
        yield {
            "start": format_clock(*divmod(cursor, 60)),
            "end": format_clock(*divmod(nxt, 60)),
        }
        cursor = nxt


def intervals_overlap(a_start, a_end, b_start, b_end) -> bool:
    """Half-open overlap test: touching intervals do not overlap."""
    return a_start < b_end and b_start < a_end


def localize(target_date: date, clock: Tuple[int, int], tz: Optional[TzLike]) -> datetime:
    """Combine a local date and wall-clock time into an aware datetime."""
    zone = get_timezone(tz)
    naive = datetime.combine(target_date, time(clock[0], clock[1]))
    return zone.localize(naive)


def start_of_day(target_date: date, tz: Optional[TzLike] = None) -> datetime:
    """00:00:00.000 of ``target_date`` in the given zone."""
    return get_timezone(tz).localize(datetime.combine(target_date, time.min))


def end_of_day(target_date: date, tz: Optional[TzLike] = None) -> datetime:
    """23:59:59.999 of ``target_date`` in the given zone."""
    return get_timezone(tz).localize(
        datetime.combine(target_date, time(23, 59, 59, 999000))
    )


def clamp_step(
    step: Optional[int],
    default: int = 60,
    minimum: int = MIN_STEP_MINUTES,
    maximum: int = MAX_STEP_MINUTES,
) -> int:
    """Clamp a caller-supplied slot step to [minimum, maximum] minutes."""
    if step is None:
        step = default
    return max(minimum, min(maximum, int(step)))


def ensure_aware_utc(value: datetime) -> datetime:
    """Interpret naive datetimes as UTC and normalise aware ones to UTC."""
    if value.tzinfo is None:
        return pytz.UTC.localize(value)
    return value.astimezone(pytz.UTC)


def utc_now() -> datetime:
    return datetime.now(pytz.UTC)
