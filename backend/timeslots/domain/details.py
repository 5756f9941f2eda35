from __future__ import annotations

from typing import Annotated, Any, List, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError


class _Details(BaseModel):
    # Free-form keys are kept alongside the typed ones.
    model_config = ConfigDict(extra="allow")


UNKNOWN_EVENT_TITLE = "Unknown event"


class EventDetails(_Details):
    kind: Literal["event"] = "event"
    event_id: str
    event_title: str = UNKNOWN_EVENT_TITLE
    event_type: Optional[str] = None
    location: Optional[str] = None
    capacity: Optional[int] = None
    reserved_by: str = "event_system"
    created_via: str = "event_form"


class ProgramItem(BaseModel):
    title: str
    start_time: Optional[str] = None
    end_time: Optional[str] = None


class FestivalDetails(_Details):
    """One hold for the whole festival; program items are never reserved on their own."""

    kind: Literal["festival"] = "festival"
    event_id: str
    event_title: str = UNKNOWN_EVENT_TITLE
    event_type: Optional[str] = "Festival"
    location: Optional[str] = None
    capacity: Optional[int] = None
    program: List[ProgramItem] = Field(default_factory=list)
    reserved_by: str = "event_system"
    created_via: str = "event_form"


class ManualDetails(_Details):
    kind: Literal["manual"] = "manual"
    user_name: str = Field(min_length=1)
    user_contact: str = Field(min_length=1)
    social_contact: Optional[str] = None
    title: Optional[str] = None
    notes: Optional[str] = None


SlotDetails = Annotated[
    Union[EventDetails, FestivalDetails, ManualDetails],
    Field(discriminator="kind"),
]

_adapter: TypeAdapter[SlotDetails] = TypeAdapter(SlotDetails)


class OtherDetails(_Details):
    """Stored bag that matches none of the typed variants (unknown `kind`, legacy rows)."""

    kind: str = "other"


StoredDetails = Union[EventDetails, FestivalDetails, ManualDetails, OtherDetails]


def parse_details(raw: Mapping[str, Any]) -> StoredDetails:
    """Read a stored details bag. Rows written without `kind` are inferred.

    Bags that fail the typed variants come back as OtherDetails, never as an error.
    """
    data = dict(raw)
    if "kind" not in data:
        data["kind"] = "event" if data.get("event_id") else "manual"
    try:
        return _adapter.validate_python(data)
    except PydanticValidationError:
        data["kind"] = str(data["kind"])
        return OtherDetails.model_validate(data)


def dump_details(details: StoredDetails) -> dict[str, Any]:
    return details.model_dump(mode="json", exclude_none=True)


def reservation_title(details: StoredDetails) -> str:
    if isinstance(details, (EventDetails, FestivalDetails)):
        return details.event_title
    if isinstance(details, ManualDetails):
        return details.title or details.user_name
    if isinstance(details, OtherDetails):
        extra = details.model_extra or {}
        title = extra.get("event_title") or extra.get("title")
        return str(title) if title else UNKNOWN_EVENT_TITLE
    raise TypeError(f"unsupported details variant: {type(details).__name__}")
