"""Appointment endpoints."""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Query, status

from app.dependencies import AppointmentServiceDep, CurrentActor, TelemedicineServiceDep
from app.schemas.appointments import (
    AppointmentCreate,
    AppointmentFilters,
    AppointmentFlowUpdate,
    AppointmentListResponse,
    AppointmentResponse,
    AppointmentStatus,
    AppointmentStatusUpdate,
    MeetingLinkResponse,
)

router = APIRouter()


@router.post(
    "/",
    response_model=AppointmentResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Appointments"],
    summary="Book appointment",
)
async def book_appointment(
    data: AppointmentCreate,
    current_actor: CurrentActor,
    service: AppointmentServiceDep,
) -> AppointmentResponse:
    """
    Reserve a slot with a provider.

    The appointment starts as pending. A 409 response means another booking
    took the slot first; re-check availability and pick another offset.
    """
    return await service.book(data, current_actor)


@router.get(
    "/",
    response_model=AppointmentListResponse,
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="List appointments",
)
async def list_appointments(
    current_actor: CurrentActor,
    service: AppointmentServiceDep,
    provider_id: UUID | None = Query(None),
    patient_email: str | None = Query(None),
    status_filter: AppointmentStatus | None = Query(None, alias="status"),
    from_date: datetime | None = Query(None),
    to_date: datetime | None = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
) -> AppointmentListResponse:
    """
    List appointments by provider and/or patient.

    Args:
        current_actor: Authenticated actor
        service: Appointment service
        provider_id: Filter by provider
        patient_email: Filter by patient email (ignored for patients, who see their own)
        status_filter: Filter by status
        from_date: Earliest scheduled instant
        to_date: Latest scheduled instant
        page: Page number
        page_size: Items per page

    Returns:
        Paginated list of appointments ordered by scheduled time
    """
    filters = AppointmentFilters(
        provider_id=provider_id,
        patient_email=patient_email,
        status=status_filter,
        from_date=from_date,
        to_date=to_date,
        page=page,
        page_size=page_size,
    )
    return await service.list_appointments(filters, current_actor)


@router.get(
    "/{appointment_id}",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="Get appointment by ID",
)
async def get_appointment(
    appointment_id: UUID,
    current_actor: CurrentActor,
    service: AppointmentServiceDep,
) -> AppointmentResponse:
    """Get a specific appointment by ID."""
    return await service.get_appointment(appointment_id, current_actor)


@router.patch(
    "/{appointment_id}/status",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="Update appointment status",
)
async def update_appointment_status(
    appointment_id: UUID,
    data: AppointmentStatusUpdate,
    current_actor: CurrentActor,
    service: AppointmentServiceDep,
) -> AppointmentResponse:
    """
    Confirm or cancel an appointment (providers and administrators).

    Confirmed appointments can still be cancelled; cancelled ones are final.
    """
    return await service.set_status(
        appointment_id,
        data.status,
        current_actor,
        unread=data.unread,
    )


@router.patch(
    "/{appointment_id}/flow",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="Update visit flow",
)
async def update_appointment_flow(
    appointment_id: UUID,
    data: AppointmentFlowUpdate,
    current_actor: CurrentActor,
    service: AppointmentServiceDep,
) -> AppointmentResponse:
    """Record check-in, vitals, consulting or completion of a confirmed visit."""
    return await service.set_flow(appointment_id, data.flow_status, current_actor)


@router.post(
    "/{appointment_id}/acknowledge",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="Acknowledge appointment update",
)
async def acknowledge_appointment(
    appointment_id: UUID,
    current_actor: CurrentActor,
    service: AppointmentServiceDep,
) -> AppointmentResponse:
    """Mark the patient's status-change notification as read."""
    return await service.acknowledge(appointment_id, current_actor)


@router.post(
    "/{appointment_id}/telemedicine",
    response_model=MeetingLinkResponse,
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="Get or create meeting link",
)
async def get_or_create_meeting_link(
    appointment_id: UUID,
    current_actor: CurrentActor,
    service: AppointmentServiceDep,
    telemedicine: TelemedicineServiceDep,
) -> MeetingLinkResponse:
    """
    Return the remote-session link of a confirmed appointment, issuing it on first use.

    Repeat calls return the same link.
    """
    # Access check (patients only see their own appointments)
    await service.get_appointment(appointment_id, current_actor)
    link = await telemedicine.ensure_meeting_link(appointment_id)
    return MeetingLinkResponse(appointment_id=appointment_id, meeting_link=link)
