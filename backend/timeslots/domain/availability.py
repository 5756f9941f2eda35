from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Sequence, Tuple

from ..models import DayStatus, Reservation
from .errors import InvariantViolation
from .intervals import dates_between, to_minutes, validate_order

logger = logging.getLogger(__name__)

Interval = Tuple[int, int]


@dataclass(frozen=True)
class OperatingHours:
    start: str
    end: str

    def __post_init__(self) -> None:
        if not validate_order(self.start, self.end):
            raise ValueError("operating hours must be HH:MM with start earlier than end")

    @property
    def window(self) -> Interval:
        return to_minutes(self.start), to_minutes(self.end)

    @property
    def minutes(self) -> int:
        lo, hi = self.window
        return hi - lo


@dataclass(frozen=True)
class DailyAvailability:
    date: date
    status: DayStatus
    reserved_minutes: int
    window_minutes: int


def merge_intervals(intervals: Iterable[Interval]) -> List[Interval]:
    """Merge overlapping and touching minute ranges."""
    merged: List[Interval] = []
    for start, end in sorted(intervals):
        if merged and start <= merged[-1][1]:
            last_start, last_end = merged[-1]
            merged[-1] = (last_start, max(last_end, end))
        else:
            merged.append((start, end))
    return merged


def _clip(reservations: Iterable[Reservation], hours: OperatingHours) -> List[Interval]:
    lo, hi = hours.window
    clipped: List[Interval] = []
    for reservation in reservations:
        start = max(to_minutes(reservation.start_time), lo)
        end = min(to_minutes(reservation.end_time), hi)
        if start < end:
            clipped.append((start, end))
    return clipped


def _has_overlap(intervals: Sequence[Interval]) -> bool:
    ordered = sorted(intervals)
    return any(prev[1] > cur[0] for prev, cur in zip(ordered, ordered[1:]))


def classify_day(
    day: date,
    reservations: Iterable[Reservation],
    hours: OperatingHours,
    busy_threshold: float = 1.0,
) -> DailyAvailability:
    """
    Classify one calendar day for the calendar view.

    Only the part of each reservation inside `hours` counts. Intervals are merged
    before summing, so a transient double booking never inflates the total.
    The day is busy once reserved time covers `busy_threshold` of the window.
    """
    if not 0 < busy_threshold <= 1:
        raise ValueError("busy_threshold must be in (0, 1]")

    same_day = [r for r in reservations if r.date == day]
    raw = [(to_minutes(r.start_time), to_minutes(r.end_time)) for r in same_day]
    if _has_overlap(raw):
        violation = InvariantViolation(f"overlapping reservations on {day.isoformat()}")
        logger.warning("%s: %s", type(violation).__name__, violation, extra={"reservation_ids": [r.id for r in same_day]})

    reserved = sum(end - start for start, end in merge_intervals(_clip(same_day, hours)))
    window = hours.minutes
    if reserved == 0:
        status = DayStatus.FREE
    elif reserved >= window * busy_threshold:
        status = DayStatus.BUSY
    else:
        status = DayStatus.PARTIAL
    return DailyAvailability(date=day, status=status, reserved_minutes=reserved, window_minutes=window)


def classify_range(
    start: date,
    end: date,
    reservations: Iterable[Reservation],
    hours: OperatingHours,
    busy_threshold: float = 1.0,
) -> List[DailyAvailability]:
    by_day: dict[date, List[Reservation]] = {}
    for reservation in reservations:
        by_day.setdefault(reservation.date, []).append(reservation)
    return [classify_day(day, by_day.get(day, []), hours, busy_threshold) for day in dates_between(start, end)]
