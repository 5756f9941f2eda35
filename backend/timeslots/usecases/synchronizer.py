from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Awaitable, Callable, List, Optional, Tuple

from ..domain.conflicts import describe_conflicts
from ..domain.details import EventDetails, FestivalDetails, ProgramItem, SlotDetails
from ..domain.errors import ConflictError, TimeSlotError
from ..domain.intervals import normalize_time
from ..models import EventStatus, Reservation
from .time_slots import SlotPatch, SlotRequest, TimeSlotService

logger = logging.getLogger(__name__)

FESTIVAL_EVENT_TYPE = "Festival"

EventWriter = Callable[["EventSnapshot"], Awaitable[object]]
EventDeleter = Callable[[str], Awaitable[object]]


@dataclass(frozen=True)
class EventSnapshot:
    id: str
    title: str
    date: date
    start_time: str
    end_time: str
    status: EventStatus
    event_type: Optional[str] = None
    location: Optional[str] = None
    capacity: Optional[int] = None
    program: List[ProgramItem] = field(default_factory=list)

    @property
    def holds_slot(self) -> bool:
        return self.status == EventStatus.ACTIVE


def build_event_details(event: EventSnapshot) -> SlotDetails:
    if event.event_type == FESTIVAL_EVENT_TYPE:
        return FestivalDetails(
            event_id=event.id,
            event_title=event.title,
            event_type=event.event_type,
            location=event.location,
            capacity=event.capacity,
            program=list(event.program),
        )
    return EventDetails(
        event_id=event.id,
        event_title=event.title,
        event_type=event.event_type,
        location=event.location,
        capacity=event.capacity,
    )


_Snapshot = Tuple[str, SlotRequest]


def _snapshot(reservation: Reservation) -> _Snapshot:
    return reservation.id, SlotRequest(
        date=reservation.date,
        start_time=reservation.start_time,
        end_time=reservation.end_time,
        details=reservation.slot_details,
    )


class EventSlotSynchronizer:
    """
    Keeps exactly one reservation per active event and none for draft or past ones.

    Each operation checks first and mutates second. If a later step fails (the
    new slot, or the upstream event write passed as `write_event`), the event's
    previous reservations are put back before the error propagates, so the
    event never ends up committed without its calendar hold.
    """

    def __init__(self, service: TimeSlotService) -> None:
        self.service = service

    async def save_event(
        self,
        event: EventSnapshot,
        write_event: Optional[EventWriter] = None,
    ) -> Optional[Reservation]:
        existing = await self.service.list_for_event(event.id)
        snapshots = [_snapshot(r) for r in existing]

        if not event.holds_slot:
            if existing:
                await self.service.delete_for_event(event.id)
                logger.info("released %d slot(s) for %s event %s", len(existing), event.status, event.id)
            await self._commit_upstream(event.id, snapshots, write_event, event)
            return None

        start = normalize_time(event.start_time, field="start_time")
        end = normalize_time(event.end_time, field="end_time")
        conflicts = [
            c for c in await self.service.conflicts_for(event.date, start, end) if c.event_id != event.id
        ]
        if conflicts:
            raise ConflictError(
                f"This time is already taken by another event. {describe_conflicts(conflicts)}",
                conflicts,
            )

        details = build_event_details(event)
        try:
            if len(existing) == 1 and (existing[0].date, existing[0].start_time, existing[0].end_time) == (
                event.date,
                start,
                end,
            ):
                reservation = await self.service.update(existing[0].id, SlotPatch(details=details))
            else:
                await self.service.delete_for_event(event.id)
                reservation = await self.service.create(
                    SlotRequest(date=event.date, start_time=start, end_time=end, details=details)
                )
        except TimeSlotError:
            await self._restore(event.id, snapshots)
            raise

        await self._commit_upstream(event.id, snapshots, write_event, event)
        return reservation

    async def delete_event(self, event_id: str, write_event: Optional[EventDeleter] = None) -> int:
        existing = await self.service.list_for_event(event_id)
        snapshots = [_snapshot(r) for r in existing]
        removed = await self.service.delete_for_event(event_id)
        await self._commit_upstream(event_id, snapshots, write_event, event_id)
        return removed

    async def _commit_upstream(
        self,
        event_id: str,
        snapshots: List[_Snapshot],
        writer: Optional[Callable[..., Awaitable[object]]],
        payload: object,
    ) -> None:
        if writer is None:
            return
        try:
            await writer(payload)
        except Exception:
            logger.warning("upstream write for event %s failed, restoring its slots", event_id)
            await self._restore(event_id, snapshots)
            raise

    async def _restore(self, event_id: str, snapshots: List[_Snapshot]) -> None:
        try:
            await self.service.delete_for_event(event_id)
            for reservation_id, request in snapshots:
                await self.service.create(request, reservation_id=reservation_id)
        except TimeSlotError:
            # The original error is re-raised by the caller; this one only gets logged.
            logger.exception("could not restore slots for event %s", event_id)
