from __future__ import annotations

from datetime import date as date_type, datetime
from enum import StrEnum
from typing import Any, Optional

from sqlalchemy import JSON, CheckConstraint, Index
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql.sqltypes import Date, DateTime, String

from .domain.details import StoredDetails, parse_details, reservation_title


class Base(DeclarativeBase):
    pass


class EventStatus(StrEnum):
    DRAFT = "draft"
    ACTIVE = "active"
    PAST = "past"


class DayStatus(StrEnum):
    FREE = "free"
    PARTIAL = "partial"
    BUSY = "busy"


class Reservation(Base):
    __tablename__ = "time_slots"
    __table_args__ = (
        CheckConstraint("start_time < end_time", name="chk_time_slots_order"),
        Index("idx_time_slots_date", "date"),
        Index("idx_time_slots_event", "event_id"),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    date: Mapped[date_type] = mapped_column(Date, nullable=False)
    start_time: Mapped[str] = mapped_column(String(5), nullable=False)
    end_time: Mapped[str] = mapped_column(String(5), nullable=False)
    details: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    event_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    start_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    end_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)

    @property
    def slot_details(self) -> StoredDetails:
        return parse_details(self.details or {})

    @property
    def title(self) -> str:
        return reservation_title(self.slot_details)
