"""FastAPI dependencies."""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import Clock, SystemClock
from app.core.redis_client import CacheManager, get_redis_client
from app.core.security import Actor, ActorRole, actor_from_payload, decode_access_token
from app.database import get_db
from app.services.appointment_service import AppointmentService
from app.services.availability_service import AvailabilityService
from app.services.booking_service import BookingService
from app.services.notification_service import (
    NotificationChannel,
    NotificationService,
    ResendEmailChannel,
)
from app.services.provider_service import ProviderService
from app.services.slot_calendar import SlotCalendar
from app.services.telemedicine_service import TelemedicineService

# Security
security = HTTPBearer()


async def get_current_actor(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
) -> Actor:
    """
    Extract the acting party from a bearer token.

    Args:
        credentials: Bearer token credentials

    Returns:
        Actor with subject, role and optional email

    Raises:
        HTTPException: If token is invalid, expired or lacks a known role
    """
    payload = decode_access_token(credentials.credentials)

    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    actor = actor_from_payload(payload)
    if actor is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token is missing subject or role",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return actor


async def require_admin(actor: Annotated[Actor, Depends(get_current_actor)]) -> Actor:
    """
    Dependency to ensure current actor has admin role.

    Raises:
        HTTPException: If actor is not admin
    """
    if actor.role != ActorRole.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return actor


def get_cache_manager() -> CacheManager:
    """Get cache manager backed by the shared Redis client."""
    return CacheManager(redis_client=get_redis_client())


def get_clock() -> Clock:
    """Get the clinic clock."""
    return SystemClock()


def get_slot_calendar() -> SlotCalendar:
    """Get the slot calendar configured from settings."""
    return SlotCalendar.from_settings()


def get_notification_channel() -> NotificationChannel:
    """Get the outbound email channel."""
    return ResendEmailChannel()


def get_provider_service(
    cache_manager: Annotated[CacheManager, Depends(get_cache_manager)],
) -> ProviderService:
    """Get provider service instance."""
    return ProviderService(cache_manager=cache_manager)


def get_booking_service(
    db: Annotated[AsyncSession, Depends(get_db)],
    provider_service: Annotated[ProviderService, Depends(get_provider_service)],
    calendar: Annotated[SlotCalendar, Depends(get_slot_calendar)],
    clock: Annotated[Clock, Depends(get_clock)],
) -> BookingService:
    """Get booking ledger instance."""
    return BookingService(db, provider_service, calendar, clock)


def get_availability_service(
    ledger: Annotated[BookingService, Depends(get_booking_service)],
) -> AvailabilityService:
    """Get availability service instance."""
    return AvailabilityService(ledger)


def get_appointment_service(
    ledger: Annotated[BookingService, Depends(get_booking_service)],
    channel: Annotated[NotificationChannel, Depends(get_notification_channel)],
) -> AppointmentService:
    """Get appointment service instance."""
    return AppointmentService(ledger, NotificationService(channel))


def get_telemedicine_service(
    db: Annotated[AsyncSession, Depends(get_db)],
    clock: Annotated[Clock, Depends(get_clock)],
) -> TelemedicineService:
    """Get telemedicine service instance."""
    return TelemedicineService(db, clock)


# Type aliases for dependency injection
DatabaseSession = Annotated[AsyncSession, Depends(get_db)]
CurrentActor = Annotated[Actor, Depends(get_current_actor)]
AdminActor = Annotated[Actor, Depends(require_admin)]
ProviderServiceDep = Annotated[ProviderService, Depends(get_provider_service)]
BookingServiceDep = Annotated[BookingService, Depends(get_booking_service)]
AvailabilityServiceDep = Annotated[AvailabilityService, Depends(get_availability_service)]
AppointmentServiceDep = Annotated[AppointmentService, Depends(get_appointment_service)]
TelemedicineServiceDep = Annotated[TelemedicineService, Depends(get_telemedicine_service)]
SlotCalendarDep = Annotated[SlotCalendar, Depends(get_slot_calendar)]
