"""Custom application exceptions."""

from typing import Any


class AppException(Exception):
    """Base application exception."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: dict[str, Any] | None = None,
    ):
        """Initialize exception with message, status code and optional details."""
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)


class NotFoundException(AppException):
    """Resource not found exception."""

    def __init__(self, message: str = "Resource not found"):
        """Initialize with 404 status code."""
        super().__init__(message, status_code=404)


class ForbiddenException(AppException):
    """Forbidden access exception."""

    def __init__(self, message: str = "Forbidden"):
        """Initialize with 403 status code."""
        super().__init__(message, status_code=403)


class ConflictException(AppException):
    """Conflict exception."""

    def __init__(self, message: str = "Conflict", details: dict[str, Any] | None = None):
        """Initialize with 409 status code."""
        super().__init__(message, status_code=409, details=details)


class ValidationException(AppException):
    """Validation error exception."""

    def __init__(self, message: str = "Validation error", details: dict[str, Any] | None = None):
        """Initialize with 422 status code."""
        super().__init__(message, status_code=422, details=details)


# ============================================================================
# Scheduling errors
# ============================================================================


class ProviderNotFound(NotFoundException):
    """Unknown provider id."""

    def __init__(self, provider_id: Any):
        super().__init__(f"Provider {provider_id} not found")
        self.provider_id = provider_id


class AppointmentNotFound(NotFoundException):
    """Unknown appointment id."""

    def __init__(self, appointment_id: Any):
        super().__init__(f"Appointment {appointment_id} not found")
        self.appointment_id = appointment_id


class UnavailableDay(ValidationException):
    """Requested date falls on a weekday the provider does not work."""

    def __init__(self, provider_name: str, weekday: str, available_days: list[str]):
        days = ", ".join(available_days) if available_days else "none"
        super().__init__(
            f"{provider_name} is not available on {weekday}s. Available days: {days}.",
            details={"weekday": weekday, "available_days": available_days},
        )
        self.available_days = available_days


class InvalidOffset(ValidationException):
    """Requested time-of-day is outside the slot catalog or already in the past."""

    def __init__(self, message: str, offset: str | None = None):
        super().__init__(message, details={"offset": offset} if offset else None)
        self.offset = offset


class SlotTaken(ConflictException):
    """Another active appointment already holds the provider/instant pair."""

    def __init__(self, provider_id: Any, offset: str):
        super().__init__(
            f"Slot {offset} is already booked for this provider",
            details={"provider_id": str(provider_id), "offset": offset},
        )


class InvalidTransition(ConflictException):
    """Illegal status change, or flow update outside a confirmed appointment."""

    def __init__(self, message: str, current: str | None = None, target: str | None = None):
        super().__init__(message, details={"current": current, "target": target})
        self.current = current
        self.target = target


class AppointmentNotConfirmed(ConflictException):
    """Operation requires a confirmed appointment."""

    def __init__(self, status: str):
        super().__init__(
            "Meeting links can only be issued for confirmed appointments",
            details={"status": status},
        )
