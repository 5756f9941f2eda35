from datetime import date
from typing import List

from fastapi import APIRouter, Depends, Query

from ..booking.session import BookingSession
from ..deps import get_booking_session, get_time_slot_service
from ..domain.errors import TimeSlotError, ValidationError
from ..schemas import DailyAvailabilityRead, SelectableTimesRead
from ..usecases.time_slots import TimeSlotService
from .reservations import to_http_error

router = APIRouter(prefix="/availability", tags=["availability"])

# One calendar page plus the spill-over weeks on either side.
MAX_RANGE_DAYS = 62


@router.get("", response_model=List[DailyAvailabilityRead])
async def list_day_statuses(
    date_from: date = Query(..., description="first day (YYYY-MM-DD)"),
    date_to: date = Query(..., description="last day, inclusive (YYYY-MM-DD)"),
    service: TimeSlotService = Depends(get_time_slot_service),
) -> list[DailyAvailabilityRead]:
    try:
        if (date_to - date_from).days > MAX_RANGE_DAYS:
            raise ValidationError(f"range must not exceed {MAX_RANGE_DAYS} days", field="date_to")
        days = await service.classify_range(date_from, date_to)
    except TimeSlotError as exc:
        raise to_http_error(exc) from exc
    return [DailyAvailabilityRead.from_domain(d) for d in days]


@router.get("/{day}/times", response_model=SelectableTimesRead)
async def list_selectable_times(
    day: date,
    session: BookingSession = Depends(get_booking_session),
) -> SelectableTimesRead:
    """Start times a picker may offer for `day`: the operating grid minus taken instants."""
    try:
        day_status = await session.open_day(day)
    except TimeSlotError as exc:
        raise to_http_error(exc) from exc
    return SelectableTimesRead(
        date=day,
        status=day_status.status,
        times=session.selectable_times(),
    )
