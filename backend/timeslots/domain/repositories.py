from __future__ import annotations

from datetime import date, datetime
from typing import Any, Mapping, Protocol

from ..models import Reservation


class ReservationGateway(Protocol):
    """Pass-through contract to the reservation store. Failures raise StoreError."""

    async def get(self, reservation_id: str) -> Reservation | None: ...

    async def list_by_date(self, day: date) -> list[Reservation]: ...

    async def list_by_range(self, start: date, end: date) -> list[Reservation]: ...

    async def find_by_event_id(self, event_id: str) -> list[Reservation]: ...

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
    ) -> Reservation: ...

    async def update(self, reservation_id: str, changes: Mapping[str, Any]) -> Reservation: ...

    async def delete(self, reservation_id: str) -> None: ...

    async def delete_by_event_id(self, event_id: str) -> int: ...
