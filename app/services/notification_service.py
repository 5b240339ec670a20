"""Notification service for sending appointment emails via Resend."""

import asyncio
from datetime import datetime
from typing import Any, Protocol

import resend
import structlog

from app.config import settings
from app.core.clock import as_utc

logger = structlog.get_logger(__name__)


class NotificationChannel(Protocol):
    """Outbound message channel."""

    async def send(self, to_address: str, subject: str, body: str) -> None: ...


class ResendEmailChannel:
    """Email channel backed by the Resend API."""

    def __init__(self, api_key: str | None = None, from_address: str | None = None):
        """Initialize channel; an empty API key disables sending."""
        self.api_key = settings.resend_api_key if api_key is None else api_key
        self.from_address = from_address or settings.email_from_address

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    async def send(self, to_address: str, subject: str, body: str) -> None:
        """
        Send a plain-text email.

        Args:
            to_address: Recipient email
            subject: Subject line
            body: Plain-text body

        Raises:
            Exception: Whatever the Resend client raises on delivery failure
        """
        if not self.enabled:
            logger.info("email_channel_disabled", to=to_address, subject=subject)
            return

        resend.api_key = self.api_key
        params = {
            "from": self.from_address,
            "to": [to_address],
            "subject": subject,
            "text": body,
        }
        # The Resend SDK is synchronous
        response = await asyncio.to_thread(resend.Emails.send, params)
        logger.info("email_sent", to=to_address, subject=subject, response=response)


def format_schedule(scheduled_at: datetime) -> tuple[str, str]:
    """Clinic-local (date, time) strings for a stored instant."""
    local = as_utc(scheduled_at).astimezone(settings.clinic_tz)
    return local.strftime("%A, %d %B %Y"), local.strftime("%H:%M")


class NotificationService:
    """
    Best-effort appointment messages to patients.

    Every send is fire-and-forget: failures are logged and reported as
    ``False`` but never raised, so a delivery problem cannot undo the state
    change that triggered it.
    """

    def __init__(self, channel: NotificationChannel):
        """Initialize service with a notification channel."""
        self.channel = channel

    async def _deliver(
        self,
        kind: str,
        appointment: dict[str, Any],
        subject: str,
        body: str,
    ) -> bool:
        to_address = appointment.get("patient_email")
        if not to_address:
            logger.warning("notification_missing_recipient", kind=kind)
            return False
        try:
            await self.channel.send(to_address, subject, body)
        except Exception as e:
            # Log error but don't fail the request
            logger.warning(
                "notification_send_failed",
                kind=kind,
                appointment_id=str(appointment.get("id")),
                error=str(e),
            )
            return False

        logger.info(
            "notification_sent",
            kind=kind,
            appointment_id=str(appointment.get("id")),
        )
        return True

    async def send_booking_received(self, appointment: dict[str, Any]) -> bool:
        """Acknowledge a new pending appointment request."""
        day, at = format_schedule(appointment["scheduled_at"])
        provider_name = appointment.get("provider_name")
        body = (
            f"Hello {appointment.get('patient_name')},\n\n"
            f"We received your appointment request with {provider_name} "
            f"on {day} at {at}. You will hear from us once it is confirmed."
        )
        return await self._deliver(
            "booking_received",
            appointment,
            subject="Appointment request received",
            body=body,
        )

    async def send_appointment_confirmed(self, appointment: dict[str, Any]) -> bool:
        """Tell the patient their appointment is confirmed."""
        day, at = format_schedule(appointment["scheduled_at"])
        provider_name = appointment.get("provider_name")
        body = (
            f"Hello {appointment.get('patient_name')},\n\n"
            f"Your appointment with {provider_name} is confirmed.\n"
            f"Date: {day}\n"
            f"Time: {at}"
        )
        return await self._deliver(
            "appointment_confirmed",
            appointment,
            subject=f"Appointment confirmed with {provider_name}",
            body=body,
        )

    async def send_appointment_cancelled(self, appointment: dict[str, Any]) -> bool:
        """Tell the patient their appointment was cancelled."""
        day, at = format_schedule(appointment["scheduled_at"])
        provider_name = appointment.get("provider_name")
        body = (
            f"Hello {appointment.get('patient_name')},\n\n"
            f"Your appointment with {provider_name} on {day} at {at} has been cancelled. "
            "You are welcome to book another slot."
        )
        return await self._deliver(
            "appointment_cancelled",
            appointment,
            subject="Appointment cancelled",
            body=body,
        )
