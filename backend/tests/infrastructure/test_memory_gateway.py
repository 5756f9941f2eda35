from datetime import date, datetime

import pytest
from timeslots.domain.errors import ReservationNotFoundError, StoreError
from timeslots.infrastructure.memory import InMemoryReservationGateway

STAMP = datetime(2025, 1, 1)


async def _insert(gateway: InMemoryReservationGateway, day: date, start: str, end: str, **details: object):
    return await gateway.insert(
        day=day,
        start_time=start,
        end_time=end,
        details={"kind": "manual", **details},
        start_at=STAMP,
        end_at=STAMP,
    )


@pytest.mark.asyncio
async def test_lists_are_sorted_and_filtered() -> None:
    gateway = InMemoryReservationGateway()
    await _insert(gateway, date(2025, 1, 2), "15:00", "16:00")
    await _insert(gateway, date(2025, 1, 2), "09:00", "10:00")
    await _insert(gateway, date(2025, 1, 5), "09:00", "10:00")

    day = await gateway.list_by_date(date(2025, 1, 2))
    assert [r.start_time for r in day] == ["09:00", "15:00"]
    assert len(await gateway.list_by_range(date(2025, 1, 1), date(2025, 1, 4))) == 2
    assert await gateway.list_by_date(date(2025, 1, 3)) == []


@pytest.mark.asyncio
async def test_event_id_is_denormalised_and_follows_details() -> None:
    gateway = InMemoryReservationGateway()
    reservation = await gateway.insert(
        day=date(2025, 1, 2),
        start_time="10:00",
        end_time="11:00",
        details={"kind": "event", "event_id": "evt-1", "event_title": "Talk"},
        start_at=STAMP,
        end_at=STAMP,
    )
    assert reservation.event_id == "evt-1"
    assert [r.id for r in await gateway.find_by_event_id("evt-1")] == [reservation.id]

    await gateway.update(reservation.id, {"details": {"kind": "manual", "user_name": "Ana"}})
    assert await gateway.find_by_event_id("evt-1") == []


@pytest.mark.asyncio
async def test_explicit_id_and_duplicates() -> None:
    gateway = InMemoryReservationGateway()
    first = await gateway.insert(
        day=date(2025, 1, 2), start_time="10:00", end_time="11:00", details={}, start_at=STAMP, end_at=STAMP,
        reservation_id="fixed",
    )
    assert first.id == "fixed"
    with pytest.raises(StoreError):
        await gateway.insert(
            day=date(2025, 1, 2), start_time="12:00", end_time="13:00", details={}, start_at=STAMP, end_at=STAMP,
            reservation_id="fixed",
        )


@pytest.mark.asyncio
async def test_missing_rows_raise_not_found() -> None:
    gateway = InMemoryReservationGateway()
    assert await gateway.get("nope") is None
    with pytest.raises(ReservationNotFoundError):
        await gateway.update("nope", {"start_time": "10:00"})
    with pytest.raises(ReservationNotFoundError):
        await gateway.delete("nope")
    assert await gateway.delete_by_event_id("nope") == 0
