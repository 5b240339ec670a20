"""Tests for provider directory endpoints and availability normalization."""

from uuid import uuid4

import pytest
from httpx import AsyncClient

from app.schemas.providers import normalize_availability

NEW_PROVIDER = {
    "name": "Dr. Michael Chen",
    "specialization": "Neurology",
    "email": "michael.chen@clinic.example",
    "experience_years": 12,
    "availability": ["tuesday", "Thu", "TUE"],
}


def test_normalize_availability():
    """Test weekday names collapse to ordered, unique tokens."""
    assert normalize_availability(["Friday", "mon", "Wed", "monday"]) == ["Mon", "Wed", "Fri"]
    assert normalize_availability([]) == []

    with pytest.raises(ValueError):
        normalize_availability(["Funday"])


@pytest.mark.asyncio
async def test_create_provider(client: AsyncClient, admin_headers: dict) -> None:
    """Test administrators can add providers."""
    response = await client.post("/api/v1/providers/", json=NEW_PROVIDER, headers=admin_headers)
    assert response.status_code == 201
    data = response.json()
    assert data["name"] == "Dr. Michael Chen"
    assert data["availability"] == ["Tue", "Thu"]

    response = await client.get(f"/api/v1/providers/{data['id']}")
    assert response.status_code == 200
    assert response.json()["specialization"] == "Neurology"


@pytest.mark.asyncio
async def test_create_provider_requires_admin(
    client: AsyncClient,
    provider_headers: dict,
    patient_headers: dict,
) -> None:
    """Test non-admins cannot add providers."""
    for headers in (provider_headers, patient_headers):
        response = await client.post("/api/v1/providers/", json=NEW_PROVIDER, headers=headers)
        assert response.status_code == 403


@pytest.mark.asyncio
async def test_create_provider_duplicate_email(client: AsyncClient, admin_headers: dict) -> None:
    """Test a duplicate email returns 409."""
    first = await client.post("/api/v1/providers/", json=NEW_PROVIDER, headers=admin_headers)
    assert first.status_code == 201

    second = await client.post("/api/v1/providers/", json=NEW_PROVIDER, headers=admin_headers)
    assert second.status_code == 409


@pytest.mark.asyncio
async def test_create_provider_invalid_day(client: AsyncClient, admin_headers: dict) -> None:
    """Test unknown weekday names are rejected."""
    payload = {**NEW_PROVIDER, "availability": ["Someday"]}
    response = await client.post("/api/v1/providers/", json=payload, headers=admin_headers)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_list_providers(
    client: AsyncClient,
    provider: dict,
    make_provider,
) -> None:
    """Test listing and filtering providers."""
    await make_provider(name="Dr. Emily Williams", specialization="Pediatrics")

    response = await client.get("/api/v1/providers/")
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 2
    assert [item["name"] for item in data["items"]] == ["Dr. Emily Williams", "Dr. Sarah Johnson"]

    response = await client.get("/api/v1/providers/", params={"specialization": "cardio"})
    data = response.json()
    assert data["total"] == 1
    assert data["items"][0]["name"] == "Dr. Sarah Johnson"


@pytest.mark.asyncio
async def test_update_provider_availability(
    client: AsyncClient,
    provider: dict,
    admin_headers: dict,
) -> None:
    """Test changing a provider's working days changes availability."""
    response = await client.put(
        f"/api/v1/providers/{provider['id']}",
        json={"availability": ["Tuesday"]},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["availability"] == ["Tue"]

    response = await client.get(
        f"/api/v1/providers/{provider['id']}/availability", params={"date": "2024-06-04"}
    )
    assert response.json()["is_working_day"] is True


@pytest.mark.asyncio
async def test_update_unknown_provider(client: AsyncClient, admin_headers: dict) -> None:
    """Test updating a missing provider returns 404."""
    response = await client.put(
        f"/api/v1/providers/{uuid4()}",
        json={"name": "Dr. Nobody"},
        headers=admin_headers,
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_get_unknown_provider(client: AsyncClient) -> None:
    """Test 404 for an unknown provider."""
    response = await client.get(f"/api/v1/providers/{uuid4()}")
    assert response.status_code == 404
