"""Appointment service for booking, status and visit-flow business logic."""

from datetime import datetime
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import and_, func, select, update

from app.core.clock import as_utc
from app.core.exceptions import AppointmentNotFound, ForbiddenException, InvalidTransition
from app.core.security import Actor
from app.models.appointments import appointments
from app.schemas.appointments import (
    AppointmentCreate,
    AppointmentFilters,
    AppointmentListResponse,
    AppointmentResponse,
    AppointmentStatus,
    FlowStatus,
    NotificationState,
)
from app.services.appointment_state import (
    check_flow_update,
    check_status_transition,
    is_backward_flow,
)
from app.services.booking_service import BookingService
from app.services.notification_service import NotificationService

logger = structlog.get_logger(__name__)


def _same_email(left: str | None, right: str | None) -> bool:
    return bool(left) and bool(right) and left.strip().lower() == right.strip().lower()


class AppointmentService:
    """Service for managing appointments."""

    def __init__(self, ledger: BookingService, notifier: NotificationService):
        """Initialize service with the booking ledger and notification sender."""
        self.ledger = ledger
        self.db = ledger.db
        self.clock = ledger.clock
        self.notifier = notifier

    async def _fetch(self, appointment_id: UUID) -> dict[str, Any]:
        stmt = select(appointments).where(appointments.c.id == appointment_id)
        result = await self.db.execute(stmt)
        row = result.mappings().first()
        if not row:
            raise AppointmentNotFound(appointment_id)
        return dict(row)

    def _check_patient_access(self, row: dict[str, Any], actor: Actor) -> None:
        """Patients carrying an email claim may only touch their own appointments."""
        if actor.is_patient and actor.email and not _same_email(actor.email, row["patient_email"]):
            raise ForbiddenException("Access denied to this appointment")

    def _now(self) -> datetime:
        return as_utc(self.clock.now())

    async def book(self, data: AppointmentCreate, actor: Actor) -> AppointmentResponse:
        """
        Book a new appointment in pending state.

        Args:
            data: Booking request
            actor: Party making the request

        Returns:
            Created appointment

        Raises:
            ForbiddenException: If a patient books under another email
            ProviderNotFound, UnavailableDay, InvalidOffset, SlotTaken
        """
        if actor.is_patient and actor.email and not _same_email(actor.email, data.patient_email):
            raise ForbiddenException("Patients can only book appointments under their own email")

        row = await self.ledger.reserve(data.provider_id, data.scheduled_at, data)
        logger.info("appointment_requested", appointment_id=str(row["id"]), actor=actor.role.value)

        await self.notifier.send_booking_received(row)
        return AppointmentResponse.model_validate(row)

    async def get_appointment(self, appointment_id: UUID, actor: Actor) -> AppointmentResponse:
        """
        Get appointment by ID.

        Raises:
            AppointmentNotFound: If appointment not found
            ForbiddenException: If a patient asks for someone else's appointment
        """
        row = await self._fetch(appointment_id)
        self._check_patient_access(row, actor)
        return AppointmentResponse.model_validate(row)

    async def list_appointments(
        self,
        filters: AppointmentFilters,
        actor: Actor,
    ) -> AppointmentListResponse:
        """
        List appointments by provider and/or patient with pagination.

        Patients are always scoped to their own email when the token carries one.
        """
        patient_email = filters.patient_email
        if actor.is_patient and actor.email:
            patient_email = actor.email

        # Build where conditions
        conditions = []
        if filters.provider_id:
            conditions.append(appointments.c.provider_id == filters.provider_id)
        if patient_email:
            conditions.append(func.lower(appointments.c.patient_email) == patient_email.lower())
        if filters.status:
            conditions.append(appointments.c.status == filters.status.value)
        if filters.from_date:
            conditions.append(appointments.c.scheduled_at >= as_utc(filters.from_date))
        if filters.to_date:
            conditions.append(appointments.c.scheduled_at <= as_utc(filters.to_date))

        # Count total
        count_stmt = select(func.count()).select_from(appointments).where(*conditions)
        total = (await self.db.execute(count_stmt)).scalar() or 0

        # Get paginated results
        offset = (filters.page - 1) * filters.page_size
        stmt = (
            select(appointments)
            .where(*conditions)
            .order_by(appointments.c.scheduled_at.asc())
            .limit(filters.page_size)
            .offset(offset)
        )
        result = await self.db.execute(stmt)
        items = [AppointmentResponse.model_validate(dict(row)) for row in result.mappings().all()]

        return AppointmentListResponse(
            total=total,
            page=filters.page,
            page_size=filters.page_size,
            items=items,
        )

    async def _conditional_update(
        self,
        appointment_id: UUID,
        expected_status: AppointmentStatus,
        values: dict[str, Any],
    ) -> dict[str, Any] | None:
        """Update the row only if its status is still ``expected_status``."""
        stmt = (
            update(appointments)
            .where(
                and_(
                    appointments.c.id == appointment_id,
                    appointments.c.status == expected_status.value,
                )
            )
            .values(**values)
            .returning(appointments)
        )
        result = await self.db.execute(stmt)
        row = result.mappings().first()
        await self.db.commit()
        return dict(row) if row else None

    async def set_status(
        self,
        appointment_id: UUID,
        new_status: AppointmentStatus,
        actor: Actor,
        unread: bool | None = None,
    ) -> AppointmentResponse:
        """
        Move an appointment through its status lifecycle.

        Args:
            appointment_id: Appointment ID
            new_status: Target status
            actor: Party making the change; patients may not change status
            unread: Explicit notification flag overriding the automatic marker

        Returns:
            Updated appointment

        Raises:
            ForbiddenException: If the actor is a patient
            AppointmentNotFound: If appointment not found
            InvalidTransition: If the change is not allowed
        """
        if not actor.is_staff:
            raise ForbiddenException(
                "Only providers and administrators can change appointment status"
            )

        row = await self._fetch(appointment_id)
        old_status = AppointmentStatus(row["status"])

        if old_status == new_status:
            return AppointmentResponse.model_validate(row)

        check_status_transition(old_status, new_status)

        now = self._now()
        values: dict[str, Any] = {"status": new_status.value, "updated_at": now}

        if new_status == AppointmentStatus.CONFIRMED:
            values["confirmed_at"] = now
        if new_status == AppointmentStatus.CANCELLED:
            values["cancelled_at"] = now
            values["flow_status"] = None

        # Staff moving the status away from pending flags the change for the patient
        if new_status != AppointmentStatus.PENDING:
            if unread is None:
                values["notification_state"] = NotificationState.UNREAD.value
            else:
                values["notification_state"] = (
                    NotificationState.UNREAD if unread else NotificationState.ACKNOWLEDGED
                ).value

        updated = await self._conditional_update(appointment_id, old_status, values)
        if updated is None:
            current = AppointmentStatus((await self._fetch(appointment_id))["status"])
            raise InvalidTransition(
                f"Appointment status changed concurrently to {current.value}",
                current=current.value,
                target=new_status.value,
            )

        logger.info(
            "appointment_status_changed",
            appointment_id=str(appointment_id),
            old_status=old_status.value,
            new_status=new_status.value,
            actor=actor.role.value,
        )

        if new_status == AppointmentStatus.CONFIRMED:
            await self.notifier.send_appointment_confirmed(updated)
        elif new_status == AppointmentStatus.CANCELLED:
            await self.notifier.send_appointment_cancelled(updated)

        return AppointmentResponse.model_validate(updated)

    async def set_flow(
        self,
        appointment_id: UUID,
        flow_status: FlowStatus,
        actor: Actor,
    ) -> AppointmentResponse:
        """
        Record the clinical visit step of a confirmed appointment.

        Steps may be set in any order; moving backwards is logged as a correction.

        Raises:
            ForbiddenException: If the actor is a patient
            AppointmentNotFound: If appointment not found
            InvalidTransition: If the appointment is not confirmed
        """
        if not actor.is_staff:
            raise ForbiddenException("Only providers and administrators can update the visit flow")

        row = await self._fetch(appointment_id)
        status = AppointmentStatus(row["status"])
        check_flow_update(status, flow_status)

        current_flow = FlowStatus(row["flow_status"]) if row["flow_status"] else None
        if current_flow == flow_status:
            return AppointmentResponse.model_validate(row)

        updated = await self._conditional_update(
            appointment_id,
            AppointmentStatus.CONFIRMED,
            {"flow_status": flow_status.value, "updated_at": self._now()},
        )
        if updated is None:
            current = AppointmentStatus((await self._fetch(appointment_id))["status"])
            check_flow_update(current, flow_status)
            raise InvalidTransition(
                "Appointment changed concurrently",
                current=current.value,
                target=flow_status.value,
            )

        logger.info(
            "appointment_flow_changed",
            appointment_id=str(appointment_id),
            old_flow=current_flow.value if current_flow else None,
            new_flow=flow_status.value,
            backward=is_backward_flow(current_flow, flow_status),
            actor=actor.role.value,
        )
        return AppointmentResponse.model_validate(updated)

    async def acknowledge(self, appointment_id: UUID, actor: Actor) -> AppointmentResponse:
        """
        Clear the patient's unread marker.

        Leaves status and flow untouched; acknowledging twice is a no-op.

        Raises:
            ForbiddenException: If the actor is not the patient
            AppointmentNotFound: If appointment not found
        """
        if not actor.is_patient:
            raise ForbiddenException("Only the patient can acknowledge appointment updates")

        row = await self._fetch(appointment_id)
        self._check_patient_access(row, actor)

        if row["notification_state"] == NotificationState.ACKNOWLEDGED.value:
            return AppointmentResponse.model_validate(row)

        stmt = (
            update(appointments)
            .where(appointments.c.id == appointment_id)
            .values(
                notification_state=NotificationState.ACKNOWLEDGED.value,
                updated_at=self._now(),
            )
            .returning(appointments)
        )
        result = await self.db.execute(stmt)
        updated = result.mappings().first()
        await self.db.commit()

        logger.info("appointment_acknowledged", appointment_id=str(appointment_id))
        return AppointmentResponse.model_validate(dict(updated))
