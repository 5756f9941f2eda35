from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Awaitable, Dict, List, Optional, Tuple, TypeVar
from zoneinfo import ZoneInfo

from ..config import Settings
from ..domain.availability import DailyAvailability, OperatingHours, classify_day, classify_range
from ..domain.conflicts import Candidate, describe_conflicts, find_conflicts
from ..domain.details import StoredDetails, dump_details
from ..domain.errors import ConflictError, ReservationNotFoundError, StoreError, ValidationError
from ..domain.intervals import normalize_time, validate_order
from ..domain.repositories import ReservationGateway
from ..models import Reservation
from ..utils.time import local_to_utc_naive

logger = logging.getLogger(__name__)

T = TypeVar("T")

STORE_FAILURE_MESSAGE = "Storage is temporarily unavailable, please try again."
INVALID_ORDER_MESSAGE = "End time must be later than start time"


@dataclass(frozen=True)
class AvailabilityResult:
    is_valid: bool
    message: str
    conflicts: Optional[List[Reservation]] = None


@dataclass(frozen=True)
class SlotRequest:
    date: date
    start_time: str
    end_time: str
    details: StoredDetails


@dataclass(frozen=True)
class SlotPatch:
    date: Optional[date] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    details: Optional[StoredDetails] = None


@dataclass
class TimeSlotService:
    """The only write path for reservations.

    Every write re-runs the conflict check right before it reaches the store.
    The store offers no cross-call locking, so two writers racing on the same
    interval can still both pass; the calendar classifier tolerates the result.
    """

    gateway: ReservationGateway
    hours: OperatingHours = field(default_factory=lambda: OperatingHours("09:00", "23:00"))
    busy_threshold: float = 1.0
    timeout_seconds: float = 5.0
    tz: ZoneInfo = field(default_factory=lambda: ZoneInfo("Europe/Belgrade"))

    @classmethod
    def from_settings(cls, gateway: ReservationGateway, settings: Settings) -> "TimeSlotService":
        return cls(
            gateway,
            hours=OperatingHours(settings.operating_hours_start, settings.operating_hours_end),
            busy_threshold=settings.busy_threshold,
            timeout_seconds=settings.store_timeout_seconds,
            tz=ZoneInfo(settings.venue_timezone),
        )

    async def _call(self, awaitable: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(awaitable, timeout=self.timeout_seconds)
        except asyncio.TimeoutError as exc:
            logger.error("reservation store call timed out after %.1fs", self.timeout_seconds)
            raise StoreError("reservation store timed out", cause=exc) from exc

    @staticmethod
    def _validated(start_time: object, end_time: object) -> Tuple[str, str]:
        start = normalize_time(start_time, field="start_time")
        end = normalize_time(end_time, field="end_time")
        if not validate_order(start, end):
            raise ValidationError(INVALID_ORDER_MESSAGE, field="end_time")
        return start, end

    async def _find_conflicts(
        self, day: date, start: str, end: str, exclude_id: Optional[str]
    ) -> List[Reservation]:
        existing = await self._call(self.gateway.list_by_date(day))
        return find_conflicts(Candidate(day, start, end), existing, exclude_id)

    async def conflicts_for(
        self,
        day: date,
        start_time: object,
        end_time: object,
        exclude_id: Optional[str] = None,
    ) -> List[Reservation]:
        """Like check_availability, but raises ValidationError or StoreError instead of reporting them."""
        start, end = self._validated(start_time, end_time)
        return await self._find_conflicts(day, start, end, exclude_id)

    async def check_availability(
        self,
        day: date,
        start_time: object,
        end_time: object,
        exclude_id: Optional[str] = None,
    ) -> AvailabilityResult:
        """Dry run. Ordinary failures come back as `is_valid=False`, never as exceptions."""
        try:
            start, end = self._validated(start_time, end_time)
        except ValidationError as exc:
            return AvailabilityResult(is_valid=False, message=exc.message)
        try:
            conflicts = await self._find_conflicts(day, start, end, exclude_id)
        except StoreError:
            return AvailabilityResult(is_valid=False, message=STORE_FAILURE_MESSAGE)
        if conflicts:
            return AvailabilityResult(is_valid=False, message=describe_conflicts(conflicts), conflicts=conflicts)
        return AvailabilityResult(is_valid=True, message=describe_conflicts(conflicts))

    async def create(self, request: SlotRequest, *, reservation_id: Optional[str] = None) -> Reservation:
        start, end = self._validated(request.start_time, request.end_time)
        conflicts = await self._find_conflicts(request.date, start, end, None)
        if conflicts:
            raise ConflictError(describe_conflicts(conflicts), conflicts)
        return await self._call(
            self.gateway.insert(
                day=request.date,
                start_time=start,
                end_time=end,
                details=dump_details(request.details),
                start_at=local_to_utc_naive(request.date, start, self.tz),
                end_at=local_to_utc_naive(request.date, end, self.tz),
                reservation_id=reservation_id,
            )
        )

    async def update(self, reservation_id: str, patch: SlotPatch) -> Reservation:
        current = await self._call(self.gateway.get(reservation_id))
        if current is None:
            raise ReservationNotFoundError(reservation_id)
        day = patch.date or current.date
        start, end = self._validated(
            patch.start_time if patch.start_time is not None else current.start_time,
            patch.end_time if patch.end_time is not None else current.end_time,
        )
        conflicts = await self._find_conflicts(day, start, end, reservation_id)
        if conflicts:
            raise ConflictError(describe_conflicts(conflicts), conflicts)
        changes: Dict[str, Any] = {
            "date": day,
            "start_time": start,
            "end_time": end,
            "start_at": local_to_utc_naive(day, start, self.tz),
            "end_at": local_to_utc_naive(day, end, self.tz),
        }
        if patch.details is not None:
            changes["details"] = dump_details(patch.details)
        return await self._call(self.gateway.update(reservation_id, changes))

    async def delete(self, reservation_id: str) -> None:
        await self._call(self.gateway.delete(reservation_id))

    async def delete_for_event(self, event_id: str) -> int:
        return await self._call(self.gateway.delete_by_event_id(event_id))

    async def list_for_date(self, day: date) -> List[Reservation]:
        return await self._call(self.gateway.list_by_date(day))

    async def list_for_range(self, start: date, end: date) -> List[Reservation]:
        if start > end:
            raise ValidationError("date_from must not be after date_to", field="date_from")
        return await self._call(self.gateway.list_by_range(start, end))

    async def list_for_event(self, event_id: str) -> List[Reservation]:
        return await self._call(self.gateway.find_by_event_id(event_id))

    async def classify_day(self, day: date) -> DailyAvailability:
        reservations = await self.list_for_date(day)
        return classify_day(day, reservations, self.hours, self.busy_threshold)

    async def classify_range(self, start: date, end: date) -> List[DailyAvailability]:
        reservations = await self.list_for_range(start, end)
        return classify_range(start, end, reservations, self.hours, self.busy_threshold)
