"""Dict-backed reservation store with the same contract as the SQL gateway."""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Mapping

from ..domain.errors import ReservationNotFoundError, StoreError
from ..domain.repositories import ReservationGateway
from ..models import Reservation

_MUTABLE_FIELDS = {"date", "start_time", "end_time", "details", "start_at", "end_at"}


class InMemoryReservationGateway(ReservationGateway):
    def __init__(self) -> None:
        self._store: Dict[str, Reservation] = {}

    @staticmethod
    def _sorted(rows: List[Reservation]) -> List[Reservation]:
        return sorted(rows, key=lambda r: (r.date, r.start_time))

    async def get(self, reservation_id: str) -> Reservation | None:
        return self._store.get(reservation_id)

    async def list_by_date(self, day: date) -> List[Reservation]:
        return self._sorted([r for r in self._store.values() if r.date == day])

    async def list_by_range(self, start: date, end: date) -> List[Reservation]:
        return self._sorted([r for r in self._store.values() if start <= r.date <= end])

    async def find_by_event_id(self, event_id: str) -> List[Reservation]:
        return [r for r in self._store.values() if r.event_id == event_id]

    async def insert(
        self,
        *,
        day: date,
        start_time: str,
        end_time: str,
        details: Mapping[str, Any],
        start_at: datetime,
        end_at: datetime,
        reservation_id: str | None = None,
    ) -> Reservation:
        now = datetime.now(timezone.utc).replace(tzinfo=None)
        reservation = Reservation(
            id=reservation_id or uuid.uuid4().hex,
            date=day,
            start_time=start_time,
            end_time=end_time,
            details=dict(details),
            event_id=details.get("event_id"),
            start_at=start_at,
            end_at=end_at,
            created_at=now,
            updated_at=now,
        )
        if reservation.id in self._store:
            raise StoreError(f"reservation {reservation.id} already exists")
        self._store[reservation.id] = reservation
        return reservation

    async def update(self, reservation_id: str, changes: Mapping[str, Any]) -> Reservation:
        reservation = self._store.get(reservation_id)
        if reservation is None:
            raise ReservationNotFoundError(reservation_id)
        for key, value in changes.items():
            if key in _MUTABLE_FIELDS:
                setattr(reservation, key, value)
        if "details" in changes:
            reservation.event_id = changes["details"].get("event_id")
        reservation.updated_at = datetime.now(timezone.utc).replace(tzinfo=None)
        return reservation

    async def delete(self, reservation_id: str) -> None:
        if self._store.pop(reservation_id, None) is None:
            raise ReservationNotFoundError(reservation_id)

    async def delete_by_event_id(self, event_id: str) -> int:
        doomed = [rid for rid, r in self._store.items() if r.event_id == event_id]
        for rid in doomed:
            del self._store[rid]
        return len(doomed)
