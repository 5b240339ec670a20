"""Availability resolver and caller-facing availability checks."""

from datetime import date
from typing import TYPE_CHECKING, Any
from uuid import UUID

from app.schemas.availability import AvailabilityResponse, SessionSlots, SlotInfo
from app.schemas.providers import WEEKDAY_NAMES, WEEKDAY_TOKENS
from app.services.slot_calendar import format_offset

if TYPE_CHECKING:
    from app.services.booking_service import BookingService


def weekday_token(day: date) -> str:
    """Weekday token (Mon..Sun) computed from the date's calendar fields."""
    return WEEKDAY_TOKENS[day.weekday()]


def weekday_name(day: date) -> str:
    """Full weekday name (Monday..Sunday)."""
    return WEEKDAY_NAMES[day.weekday()]


def works_on(provider: dict[str, Any], day: date) -> bool:
    """Whether the provider's recurring availability includes the date's weekday."""
    return weekday_token(day) in (provider.get("availability") or [])


class AvailabilityService:
    """Answers "does this provider work that day, and what is still free"."""

    def __init__(self, ledger: "BookingService"):
        """Initialize service on top of the booking ledger."""
        self.ledger = ledger
        self.db = ledger.db
        self.providers = ledger.providers
        self.calendar = ledger.calendar
        self.clock = ledger.clock

    async def check_availability(self, provider_id: UUID, day: date) -> AvailabilityResponse:
        """
        Resolve a provider's availability for a civil date.

        Args:
            provider_id: Provider ID
            day: Civil date in the clinic timezone

        Returns:
            Working-day flag with booked and free offsets

        Raises:
            ProviderNotFound: If the provider does not exist
        """
        provider = await self.providers.require_provider(self.db, provider_id)
        available_days = list(provider.get("availability") or [])
        is_working_day = works_on(provider, day)

        booked: list[str] = []
        free: list[str] = []
        sessions: list[SessionSlots] = []

        if is_working_day:
            booked_offsets = set(await self.ledger.list_booked(provider_id, day))
            bookable = set(self.calendar.bookable(day, self.clock.now()))

            booked = [format_offset(offset) for offset in sorted(booked_offsets)]
            free = [
                format_offset(offset)
                for offset in self.calendar.offsets()
                if offset in bookable and offset not in booked_offsets
            ]
            sessions = [
                SessionSlots(
                    name=name,
                    slots=[
                        SlotInfo(
                            time=format_offset(offset),
                            booked=offset in booked_offsets,
                            available=offset in bookable and offset not in booked_offsets,
                        )
                        for offset in offsets
                    ],
                )
                for name, offsets in self.calendar.sessions()
            ]

        return AvailabilityResponse(
            provider_id=provider_id,
            provider_name=provider["name"],
            date=day,
            weekday=weekday_token(day),
            is_working_day=is_working_day,
            available_days=available_days,
            booked_offsets=booked,
            available_offsets=free,
            sessions=sessions,
        )
