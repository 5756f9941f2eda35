from __future__ import annotations

import logging
from datetime import date
from enum import StrEnum
from typing import List, Optional

from ..domain.availability import DailyAvailability
from ..domain.details import SlotDetails
from ..domain.errors import ConflictError, StoreError, ValidationError
from ..domain.intervals import is_date_in_past, normalize_time, time_grid, to_minutes
from ..models import DayStatus, Reservation
from ..usecases.time_slots import STORE_FAILURE_MESSAGE, AvailabilityResult, SlotRequest, TimeSlotService
from ..utils.time import venue_today

logger = logging.getLogger(__name__)


class SessionState(StrEnum):
    INITIAL = "initial"
    FIRST_INSTANT_SELECTED = "first_instant_selected"
    RANGE_SELECTED = "range_selected"


class BookingSession:
    """
    Pick-start-then-end booking flow for one user.

    `validation` only ever holds the result of the most recent live check:
    a check that finishes after a newer pick (or a reset) is dropped.
    Nothing here outlives the session.
    """

    def __init__(self, service: TimeSlotService, *, step_minutes: int = 30) -> None:
        self.service = service
        self.step_minutes = step_minutes
        self.state = SessionState.INITIAL
        self.day: Optional[date] = None
        self.start_time: Optional[str] = None
        self.end_time: Optional[str] = None
        self.validation: Optional[AvailabilityResult] = None
        self.day_status: Optional[DailyAvailability] = None
        self.taken: List[Reservation] = []
        self._generation = 0

    def _clear_selection(self) -> None:
        self._generation += 1
        self.state = SessionState.INITIAL
        self.start_time = None
        self.end_time = None
        self.validation = None

    async def open_day(self, day: date, *, today: Optional[date] = None) -> DailyAvailability:
        """Select a calendar day and load what is already taken on it. Past days are refused."""
        if is_date_in_past(day, today or venue_today(self.service.tz)):
            raise ValidationError("Reservations cannot be made for past dates", field="date")
        self._clear_selection()
        self.day = day
        return await self._refresh_day(day)

    async def _refresh_day(self, day: date) -> DailyAvailability:
        self.taken = await self.service.list_for_date(day)
        self.day_status = await self.service.classify_day(day)
        return self.day_status

    def selectable_times(self) -> List[str]:
        hours = self.service.hours
        grid = time_grid(hours.start, hours.end, self.step_minutes)
        return [t for t in grid if not self._is_taken(t)]

    def _is_taken(self, hhmm: str) -> bool:
        minute = to_minutes(hhmm)
        return any(to_minutes(r.start_time) <= minute < to_minutes(r.end_time) for r in self.taken)

    def pick_start(self, value: object) -> None:
        if self.day is None:
            raise ValidationError("Pick a day first", field="date")
        if self.day_status is not None and self.day_status.status == DayStatus.BUSY:
            raise ValidationError("This day is fully booked", field="date")
        start = normalize_time(value, field="start_time")
        if self._is_taken(start):
            raise ValidationError("This start time is already taken", field="start_time")
        self._clear_selection()
        self.start_time = start
        self.state = SessionState.FIRST_INSTANT_SELECTED

    async def pick_end(self, value: object) -> AvailabilityResult:
        if self.state == SessionState.INITIAL or self.start_time is None or self.day is None:
            raise ValidationError("Pick a start time first", field="start_time")
        picked = normalize_time(value, field="end_time")
        if picked == self.start_time:
            raise ValidationError("End time must differ from start time", field="end_time")

        if to_minutes(picked) < to_minutes(self.start_time):
            self.start_time, self.end_time = picked, self.start_time
        else:
            self.end_time = picked
        self.state = SessionState.RANGE_SELECTED

        self._generation += 1
        generation = self._generation
        result = await self.service.check_availability(self.day, self.start_time, self.end_time)
        if generation == self._generation:
            self.validation = result
        return result

    async def submit(self, details: SlotDetails) -> Reservation:
        day = self.day
        if (
            self.state != SessionState.RANGE_SELECTED
            or day is None
            or self.start_time is None
            or self.end_time is None
        ):
            raise ValidationError("Pick a start and an end time first", field="end_time")
        request = SlotRequest(date=day, start_time=self.start_time, end_time=self.end_time, details=details)
        try:
            reservation = await self.service.create(request)
        except ConflictError as exc:
            self.validation = AvailabilityResult(is_valid=False, message=exc.message, conflicts=exc.conflicts)
            raise
        except StoreError:
            self.validation = AvailabilityResult(is_valid=False, message=STORE_FAILURE_MESSAGE)
            raise
        self._clear_selection()
        try:
            await self._refresh_day(day)
        except StoreError:
            # The booking is already stored; only the day view is stale.
            logger.warning("could not refresh %s after booking %s", day, reservation.id)
        return reservation

    def reset(self) -> None:
        self._clear_selection()
