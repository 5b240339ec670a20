"""Booking ledger: conflict-free reservation of provider slots."""

from datetime import UTC, date, datetime, time, timedelta
from typing import Any
from uuid import UUID, uuid4

import structlog
from sqlalchemy import and_, insert, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import Clock, as_utc
from app.core.exceptions import InvalidOffset, SlotTaken, UnavailableDay
from app.models.appointments import appointments
from app.schemas.appointments import AppointmentCreate, AppointmentStatus, NotificationState
from app.services.availability_service import weekday_name, works_on
from app.services.provider_service import ProviderService
from app.services.slot_calendar import SlotCalendar, format_offset

logger = structlog.get_logger(__name__)

SLOT_INDEX_NAME = "uq_appointments_provider_slot_active"


def _is_slot_conflict(error: IntegrityError) -> bool:
    """Whether an integrity error came from the active-slot uniqueness index."""
    message = str(error.orig) if getattr(error, "orig", None) is not None else str(error)
    return SLOT_INDEX_NAME in message or "UNIQUE constraint failed" in message


class BookingService:
    """
    Reservation authority for (provider, instant) pairs.

    Uniqueness of active bookings is enforced by the partial unique index on
    ``appointments``; the pre-check here only turns the common conflict into
    a fast failure. A racing insert that slips past it hits the index and
    is reported as ``SlotTaken`` as well.
    """

    def __init__(
        self,
        db: AsyncSession,
        provider_service: ProviderService,
        calendar: SlotCalendar,
        clock: Clock,
    ):
        """Initialize service with its collaborators."""
        self.db = db
        self.providers = provider_service
        self.calendar = calendar
        self.clock = clock

    def _day_bounds(self, day: date) -> tuple[datetime, datetime]:
        """UTC bounds [start, end) of a clinic-local civil date."""
        start = datetime.combine(day, time.min, tzinfo=self.clock.tz)
        end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=self.clock.tz)
        return start.astimezone(UTC), end.astimezone(UTC)

    async def find_active(self, provider_id: UUID, instant: datetime) -> dict[str, Any] | None:
        """Non-cancelled appointment holding the pair, if any."""
        stmt = select(appointments).where(
            and_(
                appointments.c.provider_id == provider_id,
                appointments.c.scheduled_at == as_utc(instant),
                appointments.c.status != AppointmentStatus.CANCELLED.value,
            )
        )
        result = await self.db.execute(stmt)
        row = result.mappings().first()
        return dict(row) if row else None

    async def list_booked(self, provider_id: UUID, day: date) -> list[time]:
        """
        Occupied offsets for a provider on a clinic-local date.

        Args:
            provider_id: Provider ID
            day: Civil date in the clinic timezone

        Returns:
            Sorted clinic-local offsets held by non-cancelled appointments
        """
        start, end = self._day_bounds(day)
        stmt = select(appointments.c.scheduled_at).where(
            and_(
                appointments.c.provider_id == provider_id,
                appointments.c.scheduled_at >= start,
                appointments.c.scheduled_at < end,
                appointments.c.status != AppointmentStatus.CANCELLED.value,
            )
        )
        result = await self.db.execute(stmt)
        offsets = {self.clock.to_local(as_utc(value)).time() for value in result.scalars()}
        return sorted(offsets)

    def validate_request(self, provider: dict[str, Any], instant: datetime) -> datetime:
        """
        Check a requested instant against availability, the catalog and the clock.

        Returns:
            The instant in clinic-local time

        Raises:
            UnavailableDay: If the provider does not work that weekday
            InvalidOffset: If the time-of-day is not bookable
        """
        local = self.clock.to_local(instant)
        day = local.date()

        if not works_on(provider, day):
            raise UnavailableDay(
                provider_name=provider["name"],
                weekday=weekday_name(day),
                available_days=list(provider.get("availability") or []),
            )

        offset = local.time()
        label = format_offset(offset)
        if offset.second or offset.microsecond:
            label = local.strftime("%H:%M:%S")

        if not self.calendar.contains(offset):
            raise InvalidOffset(f"{label} is not a bookable time slot", offset=label)

        if local <= self.clock.now():
            raise InvalidOffset(
                f"The {label} slot on {day.isoformat()} has already passed",
                offset=label,
            )

        return local

    async def reserve(
        self,
        provider_id: UUID,
        instant: datetime,
        draft: AppointmentCreate,
    ) -> dict[str, Any]:
        """
        Atomically reserve a slot and create a pending appointment.

        Args:
            provider_id: Provider ID
            instant: Aware instant of the requested slot
            draft: Patient-supplied appointment fields

        Returns:
            The created appointment row

        Raises:
            ProviderNotFound: If the provider does not exist
            UnavailableDay: If the provider does not work that day
            InvalidOffset: If the offset is outside the catalog or in the past
            SlotTaken: If another active appointment holds the pair
        """
        provider = await self.providers.require_provider(self.db, provider_id)
        local = self.validate_request(provider, instant)
        scheduled_at = as_utc(instant)
        offset = format_offset(local.time())

        if await self.find_active(provider_id, scheduled_at):
            logger.info("slot_taken", provider_id=str(provider_id), offset=offset, stage="precheck")
            raise SlotTaken(provider_id, offset)

        now = as_utc(self.clock.now())
        values = {
            "id": uuid4(),
            "provider_id": provider_id,
            "provider_name": provider["name"],
            "scheduled_at": scheduled_at,
            "patient_name": draft.patient_name,
            "patient_email": str(draft.patient_email),
            "patient_phone": draft.patient_phone,
            "reason": draft.reason,
            "status": AppointmentStatus.PENDING.value,
            "flow_status": None,
            "notification_state": NotificationState.ACKNOWLEDGED.value,
            "created_at": now,
            "updated_at": now,
        }

        stmt = insert(appointments).values(**values).returning(appointments)
        try:
            result = await self.db.execute(stmt)
            row = result.mappings().first()
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            if not _is_slot_conflict(e):
                raise
            logger.info("slot_taken", provider_id=str(provider_id), offset=offset, stage="insert")
            raise SlotTaken(provider_id, offset) from e

        logger.info(
            "appointment_booked",
            appointment_id=str(values["id"]),
            provider_id=str(provider_id),
            scheduled_at=scheduled_at.isoformat(),
        )
        return dict(row) if row else values
