"""Tests for the availability resolver and its endpoints."""

from datetime import UTC, date, datetime
from uuid import uuid4

import pytest
from httpx import AsyncClient

from app.core.exceptions import ProviderNotFound
from app.schemas.appointments import AppointmentCreate
from app.services.availability_service import (
    AvailabilityService,
    weekday_name,
    weekday_token,
    works_on,
)

PATIENT_EMAIL = "jane.doe@example.com"


def _draft(provider_id, scheduled_at: datetime) -> AppointmentCreate:
    return AppointmentCreate(
        provider_id=provider_id,
        scheduled_at=scheduled_at,
        patient_name="Jane Doe",
        patient_email=PATIENT_EMAIL,
        patient_phone="5551234567",
    )


def test_weekday_from_calendar_fields():
    """Test weekday tokens come from the date itself."""
    assert weekday_token(date(2024, 6, 3)) == "Mon"
    assert weekday_token(date(2024, 6, 4)) == "Tue"
    assert weekday_token(date(2024, 6, 9)) == "Sun"
    assert weekday_name(date(2024, 6, 5)) == "Wednesday"


def test_works_on():
    """Test recurring weekly availability."""
    provider = {"availability": ["Mon", "Wed", "Fri"]}
    assert works_on(provider, date(2024, 6, 3))
    assert not works_on(provider, date(2024, 6, 4))
    assert not works_on({"availability": []}, date(2024, 6, 3))


@pytest.mark.asyncio
async def test_check_availability_working_day(ledger, provider):
    """Test a working day lists every offset after now as free."""
    service = AvailabilityService(ledger)

    result = await service.check_availability(provider["id"], date(2024, 6, 3))

    assert result.is_working_day is True
    assert result.weekday == "Mon"
    assert result.available_days == ["Mon", "Wed", "Fri"]
    assert result.booked_offsets == []
    assert len(result.available_offsets) == 17
    assert [session.name for session in result.sessions] == ["morning", "afternoon", "evening"]


@pytest.mark.asyncio
async def test_check_availability_non_working_day(ledger, provider):
    """Test a non-working day has no offsets."""
    service = AvailabilityService(ledger)

    result = await service.check_availability(provider["id"], date(2024, 6, 4))

    assert result.is_working_day is False
    assert result.weekday == "Tue"
    assert result.available_offsets == []
    assert result.sessions == []


@pytest.mark.asyncio
async def test_check_availability_excludes_booked_and_past(ledger, provider, clock):
    """Test booked offsets and already-passed offsets are not free."""
    await ledger.reserve(
        provider["id"],
        datetime(2024, 6, 3, 14, 0, tzinfo=UTC),
        _draft(provider["id"], datetime(2024, 6, 3, 14, 0, tzinfo=UTC)),
    )
    clock.set(datetime(2024, 6, 3, 11, 10, tzinfo=UTC))

    result = await AvailabilityService(ledger).check_availability(provider["id"], date(2024, 6, 3))

    assert result.booked_offsets == ["14:00"]
    assert "14:00" not in result.available_offsets
    assert "11:00" not in result.available_offsets
    assert result.available_offsets[0] == "11:30"

    afternoon = next(session for session in result.sessions if session.name == "afternoon")
    slot = next(slot for slot in afternoon.slots if slot.time == "14:00")
    assert slot.booked is True
    assert slot.available is False


@pytest.mark.asyncio
async def test_check_availability_unknown_provider(ledger, db_session):
    """Test an unknown provider raises ProviderNotFound."""
    with pytest.raises(ProviderNotFound):
        await AvailabilityService(ledger).check_availability(uuid4(), date(2024, 6, 3))


@pytest.mark.asyncio
async def test_availability_endpoint(client: AsyncClient, provider: dict):
    """Test the availability endpoint."""
    response = await client.get(
        f"/api/v1/providers/{provider['id']}/availability",
        params={"date": "2024-06-05"},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["is_working_day"] is True
    assert data["weekday"] == "Wed"
    assert data["available_offsets"][0] == "09:00"
    assert data["available_offsets"][-1] == "17:00"


@pytest.mark.asyncio
async def test_availability_endpoint_unknown_provider(client: AsyncClient):
    """Test 404 for an unknown provider."""
    response = await client.get(
        f"/api/v1/providers/{uuid4()}/availability",
        params={"date": "2024-06-05"},
    )
    assert response.status_code == 404
    assert response.json()["error"] == "ProviderNotFound"


@pytest.mark.asyncio
async def test_slot_catalog_endpoint(client: AsyncClient):
    """Test the public slot catalog."""
    response = await client.get("/api/v1/providers/slots")
    assert response.status_code == 200
    data = response.json()
    assert data["day_start"] == "09:00"
    assert data["day_end"] == "17:00"
    assert data["interval_minutes"] == 30
    assert len(data["offsets"]) == 17
    assert [session["name"] for session in data["sessions"]] == ["morning", "afternoon", "evening"]


@pytest.mark.asyncio
async def test_booked_slots_endpoint(
    client: AsyncClient,
    provider: dict,
    booking_payload: dict,
    patient_headers: dict,
):
    """Test booked offsets reflect active bookings."""
    response = await client.post(
        "/api/v1/appointments/", json=booking_payload, headers=patient_headers
    )
    assert response.status_code == 201

    response = await client.get(
        f"/api/v1/providers/{provider['id']}/booked-slots",
        params={"date": "2024-06-03"},
    )
    assert response.status_code == 200
    assert response.json()["booked_offsets"] == ["10:00"]

    response = await client.get(
        f"/api/v1/providers/{provider['id']}/booked-slots",
        params={"date": "2024-06-05"},
    )
    assert response.json()["booked_offsets"] == []
