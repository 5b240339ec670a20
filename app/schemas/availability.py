"""Availability and slot catalog schemas."""

from datetime import date
from uuid import UUID

from pydantic import BaseModel


class SlotInfo(BaseModel):
    """One catalog offset and its state on a given day."""

    time: str
    booked: bool = False
    available: bool = True


class SessionSlots(BaseModel):
    """Offsets grouped under a named session (morning, afternoon, evening)."""

    name: str
    slots: list[SlotInfo]


class SlotCatalogResponse(BaseModel):
    """Fixed catalog of bookable offsets."""

    day_start: str
    day_end: str
    interval_minutes: int
    offsets: list[str]
    sessions: list[SessionSlots]


class BookedSlotsResponse(BaseModel):
    """Occupied offsets for a provider on a date."""

    provider_id: UUID
    date: date
    booked_offsets: list[str]


class AvailabilityResponse(BaseModel):
    """Whether a provider works a date, and which offsets remain free."""

    provider_id: UUID
    provider_name: str
    date: date
    weekday: str
    is_working_day: bool
    available_days: list[str]
    booked_offsets: list[str]
    available_offsets: list[str]
    sessions: list[SessionSlots]
