from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, Response, status

from ..deps import get_time_slot_service
from ..domain.errors import ConflictError, ReservationNotFoundError, StoreError, TimeSlotError, ValidationError
from ..models import Reservation
from ..schemas import (
    AvailabilityCheck,
    AvailabilityRead,
    ConflictDetail,
    ReservationCreate,
    ReservationPatch,
    ReservationRead,
)
from ..usecases.time_slots import STORE_FAILURE_MESSAGE, TimeSlotService
from ..utils.audit_log import AuditAction, emit_audit_log

router = APIRouter(prefix="/reservations", tags=["reservations"])


def to_http_error(exc: TimeSlotError) -> HTTPException:
    if isinstance(exc, ValidationError):
        return HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"field": exc.field, "message": exc.message},
        )
    if isinstance(exc, ConflictError):
        detail = ConflictDetail(
            message=exc.message,
            conflicts=[ReservationRead.from_db(r) for r in exc.conflicts],
        )
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=detail.model_dump(mode="json"))
    if isinstance(exc, ReservationNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="reservation not found")
    if isinstance(exc, StoreError):
        return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=STORE_FAILURE_MESSAGE)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="internal error")


def _audit(action: AuditAction, reservation: Reservation) -> None:
    try:
        emit_audit_log(
            action=action,
            initiator="user",
            reservation_id=reservation.id,
            event_id=reservation.event_id,
            day=reservation.date,
            start_time=reservation.start_time,
            end_time=reservation.end_time,
            kind=reservation.slot_details.kind,
        )
    except RuntimeError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="audit log failure") from exc


@router.get("", response_model=List[ReservationRead])
async def list_reservations(
    day: Optional[date] = Query(default=None, alias="date"),
    date_from: Optional[date] = Query(default=None),
    date_to: Optional[date] = Query(default=None),
    service: TimeSlotService = Depends(get_time_slot_service),
) -> list[ReservationRead]:
    try:
        if day is not None:
            rows = await service.list_for_date(day)
        elif date_from is not None and date_to is not None:
            rows = await service.list_for_range(date_from, date_to)
        else:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="either date or both date_from and date_to are required",
            )
    except TimeSlotError as exc:
        raise to_http_error(exc) from exc
    return [ReservationRead.from_db(r) for r in rows]


@router.post("/check", response_model=AvailabilityRead)
async def check_availability(
    payload: AvailabilityCheck,
    service: TimeSlotService = Depends(get_time_slot_service),
) -> AvailabilityRead:
    result = await service.check_availability(
        payload.date, payload.start_time, payload.end_time, exclude_id=payload.exclude_id
    )
    return AvailabilityRead.from_result(result)


@router.post("", response_model=ReservationRead, status_code=status.HTTP_201_CREATED)
async def create_reservation(
    payload: ReservationCreate,
    service: TimeSlotService = Depends(get_time_slot_service),
) -> ReservationRead:
    try:
        reservation = await service.create(payload.to_request())
    except TimeSlotError as exc:
        raise to_http_error(exc) from exc
    _audit("reservation.created", reservation)
    return ReservationRead.from_db(reservation)


@router.patch("/{reservation_id}", response_model=ReservationRead)
async def update_reservation(
    payload: ReservationPatch,
    reservation_id: str = Path(..., min_length=1),
    service: TimeSlotService = Depends(get_time_slot_service),
) -> ReservationRead:
    try:
        reservation = await service.update(reservation_id, payload.to_patch())
    except TimeSlotError as exc:
        raise to_http_error(exc) from exc
    _audit("reservation.updated", reservation)
    return ReservationRead.from_db(reservation)


@router.delete("/{reservation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_reservation(
    reservation_id: str = Path(..., min_length=1),
    service: TimeSlotService = Depends(get_time_slot_service),
) -> Response:
    try:
        await service.delete(reservation_id)
    except TimeSlotError as exc:
        raise to_http_error(exc) from exc
    try:
        emit_audit_log(action="reservation.deleted", initiator="user", reservation_id=reservation_id)
    except RuntimeError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="audit log failure") from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def delete_reservations_for_event(
    event_id: str = Query(..., min_length=1),
    service: TimeSlotService = Depends(get_time_slot_service),
) -> Response:
    try:
        removed = await service.delete_for_event(event_id)
    except TimeSlotError as exc:
        raise to_http_error(exc) from exc
    try:
        emit_audit_log(
            action="reservation.event_released",
            initiator="event_system",
            reservation_id=None,
            event_id=event_id,
            extra={"removed": removed},
        )
    except RuntimeError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="audit log failure") from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
