from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from ..models import Reservation


class TimeSlotError(Exception):
    """Base class for scheduling engine errors."""


class ValidationError(TimeSlotError):
    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.field = field


class ConflictError(TimeSlotError):
    def __init__(self, message: str, conflicts: Sequence["Reservation"] = ()) -> None:
        super().__init__(message)
        self.message = message
        self.conflicts = list(conflicts)


class StoreError(TimeSlotError):
    """The reservation store failed. `cause` holds the underlying exception."""

    def __init__(self, message: str, *, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause


class InvariantViolation(TimeSlotError):
    """Overlapping reservations found on one date. Logged, never surfaced."""


class ReservationNotFoundError(StoreError):
    def __init__(self, reservation_id: str) -> None:
        super().__init__(f"reservation {reservation_id} not found")
        self.reservation_id = reservation_id
