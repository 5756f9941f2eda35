from datetime import date, datetime
from typing import Any, List, cast

import pytest
from fastapi import HTTPException
from timeslots.domain.errors import ConflictError, ReservationNotFoundError
from timeslots.models import Reservation
from timeslots.routers import reservations as router
from timeslots.schemas import ReservationCreate, ReservationPatch, ReservationRead
from timeslots.usecases.time_slots import SlotPatch, SlotRequest, TimeSlotService

DAY = date(2025, 4, 12)


def _reservation(rid: str = "r1", start: str = "10:00", end: str = "11:00") -> Reservation:
    now = datetime(2025, 4, 1, 12, 0)
    return Reservation(
        id=rid,
        date=DAY,
        start_time=start,
        end_time=end,
        details={"kind": "manual", "user_name": "Ana", "user_contact": "ana@example.com"},
        event_id=None,
        start_at=now,
        end_at=now,
        created_at=now,
        updated_at=now,
    )


class FakeService:
    def __init__(self, reservation: Reservation) -> None:
        self.reservation = reservation
        self.deleted: List[str] = []

    async def create(self, request: SlotRequest) -> Reservation:
        return self.reservation

    async def update(self, reservation_id: str, patch: SlotPatch) -> Reservation:
        if reservation_id != self.reservation.id:
            raise ReservationNotFoundError(reservation_id)
        return self.reservation

    async def delete(self, reservation_id: str) -> None:
        self.deleted.append(reservation_id)


def _payload() -> ReservationCreate:
    return ReservationCreate.model_validate(
        {
            "date": DAY.isoformat(),
            "start_time": "10:00",
            "end_time": "11:00",
            "details": {"kind": "manual", "user_name": "Ana", "user_contact": "ana@example.com"},
        }
    )


@pytest.mark.asyncio
async def test_create_reservation_emits_audit(monkeypatch: pytest.MonkeyPatch) -> None:
    reservation = _reservation()
    calls: list[dict[str, Any]] = []

    def fake_emit(**kwargs: Any) -> None:
        calls.append(kwargs)

    monkeypatch.setattr(router, "emit_audit_log", fake_emit)

    result: ReservationRead = await router.create_reservation(
        payload=_payload(),
        service=cast(TimeSlotService, FakeService(reservation)),
    )

    assert result.id == reservation.id
    assert len(calls) == 1
    assert calls[0]["action"] == "reservation.created"
    assert calls[0]["reservation_id"] == reservation.id
    assert calls[0]["kind"] == "manual"


@pytest.mark.asyncio
async def test_create_conflict_is_409_and_not_audited(monkeypatch: pytest.MonkeyPatch) -> None:
    clash = _reservation("other")

    class ConflictingService(FakeService):
        async def create(self, request: SlotRequest) -> Reservation:
            raise ConflictError("Time is taken", [clash])

    calls: list[dict[str, Any]] = []
    monkeypatch.setattr(router, "emit_audit_log", lambda **kwargs: calls.append(kwargs))

    with pytest.raises(HTTPException) as excinfo:
        await router.create_reservation(
            payload=_payload(),
            service=cast(TimeSlotService, ConflictingService(clash)),
        )
    assert excinfo.value.status_code == 409
    assert excinfo.value.detail["conflicts"][0]["id"] == "other"
    assert calls == []


@pytest.mark.asyncio
async def test_update_missing_reservation_is_404(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(router, "emit_audit_log", lambda **kwargs: None)
    with pytest.raises(HTTPException) as excinfo:
        await router.update_reservation(
            payload=ReservationPatch(start_time="12:00"),
            reservation_id="missing",
            service=cast(TimeSlotService, FakeService(_reservation())),
        )
    assert excinfo.value.status_code == 404


@pytest.mark.asyncio
async def test_delete_reservation_log_failure_returns_500(monkeypatch: pytest.MonkeyPatch) -> None:
    service = FakeService(_reservation())

    def fake_emit(**kwargs: Any) -> None:
        raise RuntimeError("fail log")

    monkeypatch.setattr(router, "emit_audit_log", fake_emit)

    with pytest.raises(HTTPException) as excinfo:
        await router.delete_reservation(reservation_id="r1", service=cast(TimeSlotService, service))
    assert excinfo.value.status_code == 500
    assert service.deleted == ["r1"]
