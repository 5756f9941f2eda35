from datetime import date as date_type, datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .domain.availability import DailyAvailability
from .domain.details import ProgramItem, SlotDetails, dump_details
from .domain.errors import ValidationError as DomainValidationError
from .domain.intervals import normalize_time
from .models import DayStatus, EventStatus, Reservation
from .usecases.synchronizer import EventSnapshot
from .usecases.time_slots import AvailabilityResult, SlotPatch, SlotRequest


class ReservationRead(BaseModel):
    id: str
    date: date_type
    start_time: str
    end_time: str
    details: dict[str, Any]
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_db(cls, reservation: Reservation) -> "ReservationRead":
        return cls(
            id=reservation.id,
            date=reservation.date,
            start_time=reservation.start_time,
            end_time=reservation.end_time,
            details=dump_details(reservation.slot_details),
            created_at=reservation.created_at,
            updated_at=reservation.updated_at,
        )


class ReservationCreate(BaseModel):
    date: date_type
    start_time: str
    end_time: str
    details: SlotDetails

    def to_request(self) -> SlotRequest:
        return SlotRequest(date=self.date, start_time=self.start_time, end_time=self.end_time, details=self.details)


class ReservationPatch(BaseModel):
    date: Optional[date_type] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    details: Optional[SlotDetails] = None

    def to_patch(self) -> SlotPatch:
        return SlotPatch(date=self.date, start_time=self.start_time, end_time=self.end_time, details=self.details)


class AvailabilityCheck(BaseModel):
    date: date_type
    start_time: str
    end_time: str
    exclude_id: Optional[str] = None


class AvailabilityRead(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    is_valid: bool = Field(serialization_alias="isValid")
    message: str
    conflicts: Optional[List[ReservationRead]] = None

    @classmethod
    def from_result(cls, result: AvailabilityResult) -> "AvailabilityRead":
        conflicts = None
        if result.conflicts:
            conflicts = [ReservationRead.from_db(r) for r in result.conflicts]
        return cls(is_valid=result.is_valid, message=result.message, conflicts=conflicts)


class ConflictDetail(BaseModel):
    message: str
    conflicts: List[ReservationRead]


class DailyAvailabilityRead(BaseModel):
    date: date_type
    status: DayStatus
    reserved_minutes: int
    window_minutes: int

    @classmethod
    def from_domain(cls, item: DailyAvailability) -> "DailyAvailabilityRead":
        return cls(
            date=item.date,
            status=item.status,
            reserved_minutes=item.reserved_minutes,
            window_minutes=item.window_minutes,
        )


class EventSync(BaseModel):
    title: str = Field(min_length=1)
    date: date_type
    start_time: str
    end_time: str
    status: EventStatus
    event_type: Optional[str] = None
    location: Optional[str] = None
    capacity: Optional[int] = Field(default=None, ge=0)
    program: List[ProgramItem] = Field(default_factory=list)

    @field_validator("start_time", "end_time")
    @classmethod
    def _canonical_time(cls, value: str) -> str:
        try:
            return normalize_time(value)
        except DomainValidationError as exc:
            raise ValueError(exc.message) from exc

    def to_snapshot(self, event_id: str) -> EventSnapshot:
        return EventSnapshot(
            id=event_id,
            title=self.title,
            date=self.date,
            start_time=self.start_time,
            end_time=self.end_time,
            status=self.status,
            event_type=self.event_type,
            location=self.location,
            capacity=self.capacity,
            program=list(self.program),
        )


class SelectableTimesRead(BaseModel):
    date: date_type
    status: DayStatus
    times: List[str]
