"""Telemedicine link issuer for confirmed appointments."""

import re
import secrets
from uuid import UUID

import structlog
from sqlalchemy import and_, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.clock import Clock, SystemClock, as_utc
from app.core.exceptions import AppointmentNotConfirmed, AppointmentNotFound
from app.models.appointments import appointments
from app.schemas.appointments import AppointmentStatus

logger = structlog.get_logger(__name__)


class MeetingRoomProvider:
    """Builds meeting URLs from opaque room tokens on a configured base URL."""

    def __init__(self, base_url: str | None = None, room_prefix: str | None = None):
        """Initialize with base URL and room prefix (defaults to settings)."""
        self.base_url = (base_url or settings.telemedicine_base_url).rstrip("/")
        prefix = settings.telemedicine_room_prefix if room_prefix is None else room_prefix
        self.room_prefix = re.sub(r"[^a-zA-Z0-9-]", "", prefix)

    @staticmethod
    def generate_token() -> str:
        """Unguessable room token."""
        return secrets.token_urlsafe(16)

    def room_name(self, token: str) -> str:
        """Room name for a token."""
        return f"{self.room_prefix}-{token}" if self.room_prefix else token

    def create_link(self) -> str:
        """Mint a new meeting URL."""
        return f"{self.base_url}/{self.room_name(self.generate_token())}"


class TelemedicineService:
    """Issues one meeting link per confirmed appointment."""

    def __init__(
        self,
        db: AsyncSession,
        clock: Clock | None = None,
        room_provider: MeetingRoomProvider | None = None,
    ):
        """Initialize service with database session, clock and room provider."""
        self.db = db
        self.clock = clock or SystemClock()
        self.rooms = room_provider or MeetingRoomProvider()

    async def _get_row(self, appointment_id: UUID):
        stmt = select(
            appointments.c.id,
            appointments.c.status,
            appointments.c.meeting_link,
        ).where(appointments.c.id == appointment_id)
        result = await self.db.execute(stmt)
        row = result.first()
        if not row:
            raise AppointmentNotFound(appointment_id)
        return row

    async def ensure_meeting_link(self, appointment_id: UUID) -> str:
        """
        Return the appointment's meeting link, issuing one if needed.

        Repeat calls return the same link. Concurrent first calls race on a
        conditional update; the loser re-reads and returns the winner's link.

        Args:
            appointment_id: Appointment ID

        Returns:
            Meeting URL

        Raises:
            AppointmentNotFound: If appointment not found
            AppointmentNotConfirmed: If the appointment is not confirmed
        """
        row = await self._get_row(appointment_id)

        if row.status != AppointmentStatus.CONFIRMED.value:
            raise AppointmentNotConfirmed(row.status)

        if row.meeting_link:
            return row.meeting_link

        link = self.rooms.create_link()
        stmt = (
            update(appointments)
            .where(
                and_(
                    appointments.c.id == appointment_id,
                    appointments.c.status == AppointmentStatus.CONFIRMED.value,
                    or_(
                        appointments.c.meeting_link.is_(None),
                        appointments.c.meeting_link == "",
                    ),
                )
            )
            .values(meeting_link=link, updated_at=as_utc(self.clock.now()))
        )
        result = await self.db.execute(stmt)
        await self.db.commit()

        if result.rowcount == 1:
            logger.info("meeting_link_issued", appointment_id=str(appointment_id))
            return link

        # Someone else issued a link (or changed the status) in between
        row = await self._get_row(appointment_id)
        if row.meeting_link:
            return row.meeting_link
        raise AppointmentNotConfirmed(row.status)
