from fastapi import APIRouter, Depends, HTTPException, Path, Response, status

from ..deps import get_synchronizer
from ..domain.errors import TimeSlotError
from ..schemas import EventSync, ReservationRead
from ..usecases.synchronizer import EventSlotSynchronizer
from ..utils.audit_log import emit_audit_log
from .reservations import to_http_error

router = APIRouter(prefix="/events", tags=["events"])


@router.put(
    "/{event_id}/reservation",
    response_model=ReservationRead,
    responses={204: {"description": "event status holds no calendar slot"}},
)
async def sync_event_reservation(
    payload: EventSync,
    event_id: str = Path(..., min_length=1),
    synchronizer: EventSlotSynchronizer = Depends(get_synchronizer),
) -> ReservationRead | Response:
    try:
        reservation = await synchronizer.save_event(payload.to_snapshot(event_id))
    except TimeSlotError as exc:
        raise to_http_error(exc) from exc

    try:
        if reservation is None:
            emit_audit_log(
                action="reservation.event_released",
                initiator="event_system",
                reservation_id=None,
                event_id=event_id,
                extra={"event_status": payload.status.value},
            )
        else:
            emit_audit_log(
                action="reservation.event_synced",
                initiator="event_system",
                reservation_id=reservation.id,
                event_id=event_id,
                day=reservation.date,
                start_time=reservation.start_time,
                end_time=reservation.end_time,
                kind=reservation.slot_details.kind,
            )
    except RuntimeError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="audit log failure") from exc

    if reservation is None:
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    return ReservationRead.from_db(reservation)


@router.delete("/{event_id}/reservation", status_code=status.HTTP_204_NO_CONTENT)
async def release_event_reservation(
    event_id: str = Path(..., min_length=1),
    synchronizer: EventSlotSynchronizer = Depends(get_synchronizer),
) -> Response:
    try:
        removed = await synchronizer.delete_event(event_id)
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
