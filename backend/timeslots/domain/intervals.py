"""Wall-clock interval helpers.

Times are zero-padded 24-hour ``HH:MM`` strings. Intervals are half-open
``[start, end)``, so back-to-back bookings (10:00-11:00 and 11:00-12:00) do not
overlap.
"""

from __future__ import annotations

import re
from datetime import date, time, timedelta
from typing import Iterator, List

from .errors import ValidationError

_STRICT_TIME = re.compile(r"^([01][0-9]|2[0-3]):([0-5][0-9])$")
_LOOSE_TIME = re.compile(r"^([01]?[0-9]|2[0-3]):([0-5][0-9])(?::([0-5][0-9]))?$")

MINUTES_PER_DAY = 24 * 60


def validate_time_format(value: object) -> bool:
    if not isinstance(value, str):
        return False
    return _STRICT_TIME.match(value) is not None


def normalize_time(value: object, *, field: str = "time") -> str:
    """Return the canonical ``HH:MM`` form of `value`.

    Accepts ``H:MM``, ``HH:MM``, ``HH:MM:SS`` and ``datetime.time``. Seconds are
    dropped. Raises ValidationError for anything else.
    """
    if isinstance(value, time):
        return f"{value.hour:02d}:{value.minute:02d}"
    if isinstance(value, str):
        match = _LOOSE_TIME.match(value.strip())
        if match is not None:
            return f"{int(match.group(1)):02d}:{match.group(2)}"
    raise ValidationError(f"{field} must be a time in HH:MM format", field=field)


def to_minutes(value: str) -> int:
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def from_minutes(total: int) -> str:
    if not 0 <= total < MINUTES_PER_DAY:
        raise ValueError("minutes out of range for a single day")
    return f"{total // 60:02d}:{total % 60:02d}"


def validate_order(start: object, end: object) -> bool:
    if not (validate_time_format(start) and validate_time_format(end)):
        return False
    return to_minutes(str(start)) < to_minutes(str(end))


def overlaps(start_a: str, end_a: str, start_b: str, end_b: str) -> bool:
    return to_minutes(start_a) < to_minutes(end_b) and to_minutes(start_b) < to_minutes(end_a)


def time_grid(start: str, end: str, step_minutes: int = 30) -> List[str]:
    """Selectable instants from `start` up to, but excluding, `end`."""
    if step_minutes < 1:
        raise ValueError("step_minutes must be >= 1")
    return [from_minutes(m) for m in range(to_minutes(start), to_minutes(end), step_minutes)]


def is_date_in_past(day: date, today: date) -> bool:
    return day < today


def dates_between(start: date, end: date) -> Iterator[date]:
    """Every calendar day in the inclusive range."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)
