from __future__ import annotations

import logging
import uuid
from contextlib import contextmanager
from datetime import date, datetime, timezone
from typing import Any, Iterator, List, Mapping

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..domain.errors import ReservationNotFoundError, StoreError
from ..domain.repositories import ReservationGateway
from ..models import Reservation

logger = logging.getLogger(__name__)

_MUTABLE_FIELDS = {"date", "start_time", "end_time", "details", "start_at", "end_at"}


def _utc_now_naive() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


@contextmanager
def _store_errors(action: str) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as exc:
        logger.error("reservation store failed to %s", action, exc_info=exc)
        raise StoreError(f"failed to {action}", cause=exc) from exc


class SqlAlchemyReservationGateway(ReservationGateway):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, reservation_id: str) -> Reservation | None:
        with _store_errors("load reservation"):
            return await self.session.get(Reservation, reservation_id)

    async def list_by_date(self, day: date) -> List[Reservation]:
        stmt = select(Reservation).where(Reservation.date == day).order_by(Reservation.start_time)
        with _store_errors("list reservations by date"):
            return list((await self.session.scalars(stmt)).all())

    async def list_by_range(self, start: date, end: date) -> List[Reservation]:
        stmt = (
            select(Reservation)
            .where(Reservation.date >= start, Reservation.date <= end)
            .order_by(Reservation.date, Reservation.start_time)
        )
        with _store_errors("list reservations by range"):
            return list((await self.session.scalars(stmt)).all())

    async def find_by_event_id(self, event_id: str) -> List[Reservation]:
        stmt = select(Reservation).where(Reservation.event_id == event_id)
        with _store_errors("find reservations by event"):
            return list((await self.session.scalars(stmt)).all())

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
        now = _utc_now_naive()
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
        with _store_errors("insert reservation"):
            self.session.add(reservation)
            await self.session.flush()
        return reservation

    async def update(self, reservation_id: str, changes: Mapping[str, Any]) -> Reservation:
        with _store_errors("update reservation"):
            reservation = await self.session.get(Reservation, reservation_id)
            if reservation is None:
                raise ReservationNotFoundError(reservation_id)
            for key, value in changes.items():
                if key in _MUTABLE_FIELDS:
                    setattr(reservation, key, value)
            if "details" in changes:
                reservation.event_id = changes["details"].get("event_id")
            reservation.updated_at = _utc_now_naive()
            await self.session.flush()
        return reservation

    async def delete(self, reservation_id: str) -> None:
        with _store_errors("delete reservation"):
            result = await self.session.execute(delete(Reservation).where(Reservation.id == reservation_id))
            if result.rowcount == 0:
                raise ReservationNotFoundError(reservation_id)

    async def delete_by_event_id(self, event_id: str) -> int:
        with _store_errors("delete reservations by event"):
            result = await self.session.execute(delete(Reservation).where(Reservation.event_id == event_id))
        return int(result.rowcount or 0)
