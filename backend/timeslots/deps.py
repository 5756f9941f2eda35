from functools import lru_cache
from typing import AsyncIterator

from fastapi import Depends

from .booking.session import BookingSession
from .config import Settings, get_settings
from .domain.repositories import ReservationGateway
from .infrastructure.memory import InMemoryReservationGateway
from .infrastructure.repositories import SqlAlchemyReservationGateway
from .usecases.synchronizer import EventSlotSynchronizer
from .usecases.time_slots import TimeSlotService


@lru_cache
def get_memory_gateway() -> InMemoryReservationGateway:
    return InMemoryReservationGateway()


async def get_gateway(settings: Settings = Depends(get_settings)) -> AsyncIterator[ReservationGateway]:
    """One gateway per request. With the SQL backend the whole request is one transaction."""
    if settings.store_backend == "memory":
        yield get_memory_gateway()
        return

    from .database import async_session

    async with async_session() as session:
        async with session.begin():
            yield SqlAlchemyReservationGateway(session)


def get_time_slot_service(
    gateway: ReservationGateway = Depends(get_gateway),
    settings: Settings = Depends(get_settings),
) -> TimeSlotService:
    return TimeSlotService.from_settings(gateway, settings)


def get_synchronizer(service: TimeSlotService = Depends(get_time_slot_service)) -> EventSlotSynchronizer:
    return EventSlotSynchronizer(service)


def get_booking_session(
    service: TimeSlotService = Depends(get_time_slot_service),
    settings: Settings = Depends(get_settings),
) -> BookingSession:
    return BookingSession(service, step_minutes=settings.slot_step_minutes)
