from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Optional

from ..models import Reservation
from .intervals import overlaps


@dataclass(frozen=True)
class Candidate:
    date: date
    start_time: str
    end_time: str


def find_conflicts(
    candidate: Candidate,
    existing: Iterable[Reservation],
    exclude_id: Optional[str] = None,
) -> List[Reservation]:
    """Existing reservations on the candidate's date whose interval overlaps it.

    `exclude_id` drops the reservation being edited in place.
    """
    return [
        reservation
        for reservation in existing
        if reservation.date == candidate.date
        and (exclude_id is None or reservation.id != exclude_id)
        and overlaps(reservation.start_time, reservation.end_time, candidate.start_time, candidate.end_time)
    ]


def describe_conflicts(conflicts: List[Reservation]) -> str:
    if not conflicts:
        return "available"
    if len(conflicts) == 1:
        conflict = conflicts[0]
        return f'Time is taken by "{conflict.title}" ({conflict.start_time} - {conflict.end_time})'
    return f"Time overlaps {len(conflicts)} existing reservations. Please pick another time."


def format_slot_for_display(reservation: Reservation) -> str:
    return f"{reservation.date:%d.%m.%Y} {reservation.start_time} - {reservation.end_time}"
