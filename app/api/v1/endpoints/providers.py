"""Provider directory and availability endpoints."""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status
from sqlalchemy.exc import IntegrityError

from app.dependencies import (
    AdminActor,
    AvailabilityServiceDep,
    BookingServiceDep,
    DatabaseSession,
    ProviderServiceDep,
    SlotCalendarDep,
)
from app.schemas.availability import (
    AvailabilityResponse,
    BookedSlotsResponse,
    SessionSlots,
    SlotCatalogResponse,
    SlotInfo,
)
from app.schemas.providers import (
    ProviderCreate,
    ProviderListResponse,
    ProviderResponse,
    ProviderUpdate,
)
from app.services.slot_calendar import format_offset

router = APIRouter()


@router.get(
    "/",
    response_model=ProviderListResponse,
    summary="List providers",
)
async def list_providers(
    db: DatabaseSession,
    provider_service: ProviderServiceDep,
    specialization: str | None = Query(None, description="Filter by specialization"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
) -> ProviderListResponse:
    """List providers with optional specialization filter."""
    items, total = await provider_service.list_providers(
        db,
        skip=(page - 1) * page_size,
        limit=page_size,
        specialization=specialization,
    )
    return ProviderListResponse(
        total=total,
        page=page,
        page_size=page_size,
        items=[ProviderResponse.model_validate(item) for item in items],
    )


@router.get(
    "/slots",
    response_model=SlotCatalogResponse,
    summary="Bookable time-of-day catalog",
)
async def get_slot_catalog(calendar: SlotCalendarDep) -> SlotCatalogResponse:
    """Return the fixed catalog of bookable offsets grouped by session."""
    return SlotCatalogResponse(
        day_start=format_offset(calendar.day_start),
        day_end=format_offset(calendar.day_end),
        interval_minutes=calendar.interval_minutes,
        offsets=[format_offset(offset) for offset in calendar.offsets()],
        sessions=[
            SessionSlots(name=name, slots=[SlotInfo(time=format_offset(o)) for o in offsets])
            for name, offsets in calendar.sessions()
        ],
    )


@router.post(
    "/",
    response_model=ProviderResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create provider (admin only)",
)
async def create_provider(
    provider_data: ProviderCreate,
    db: DatabaseSession,
    provider_service: ProviderServiceDep,
    admin: AdminActor,
) -> ProviderResponse:
    """
    Create a provider profile.

    - **name**: Display name
    - **availability**: Weekdays worked, e.g. ["Mon", "Wed", "Fri"]
    """
    try:
        provider = await provider_service.create_provider(db, provider_data)
    except IntegrityError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Provider with email '{provider_data.email}' already exists",
        ) from e
    return ProviderResponse.model_validate(provider)


@router.get(
    "/{provider_id}",
    response_model=ProviderResponse,
    summary="Get provider by ID",
)
async def get_provider(
    provider_id: UUID,
    db: DatabaseSession,
    provider_service: ProviderServiceDep,
) -> ProviderResponse:
    """Get a provider profile."""
    provider = await provider_service.require_provider(db, provider_id)
    return ProviderResponse.model_validate(provider)


@router.put(
    "/{provider_id}",
    response_model=ProviderResponse,
    summary="Update provider (admin only)",
)
async def update_provider(
    provider_id: UUID,
    provider_data: ProviderUpdate,
    db: DatabaseSession,
    provider_service: ProviderServiceDep,
    admin: AdminActor,
) -> ProviderResponse:
    """Update a provider profile, including its weekly availability."""
    try:
        provider = await provider_service.update_provider(db, provider_id, provider_data)
    except IntegrityError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Provider with email '{provider_data.email}' already exists",
        ) from e
    return ProviderResponse.model_validate(provider)


@router.get(
    "/{provider_id}/availability",
    response_model=AvailabilityResponse,
    summary="Check provider availability for a date",
)
async def check_availability(
    provider_id: UUID,
    availability_service: AvailabilityServiceDep,
    day: date = Query(..., alias="date", description="Civil date, YYYY-MM-DD"),
) -> AvailabilityResponse:
    """
    Whether the provider works the date, with booked and free offsets.

    Free offsets exclude same-day slots that have already passed.
    """
    return await availability_service.check_availability(provider_id, day)


@router.get(
    "/{provider_id}/booked-slots",
    response_model=BookedSlotsResponse,
    summary="Occupied offsets for a provider on a date",
)
async def list_booked_slots(
    provider_id: UUID,
    db: DatabaseSession,
    provider_service: ProviderServiceDep,
    ledger: BookingServiceDep,
    day: date = Query(..., alias="date", description="Civil date, YYYY-MM-DD"),
) -> BookedSlotsResponse:
    """List offsets held by pending or confirmed appointments."""
    await provider_service.require_provider(db, provider_id)
    booked = await ledger.list_booked(provider_id, day)
    return BookedSlotsResponse(
        provider_id=provider_id,
        date=day,
        booked_offsets=[format_offset(offset) for offset in booked],
    )
