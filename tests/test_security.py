"""Tests for actor tokens."""

from datetime import timedelta

from app.core.security import (
    Actor,
    ActorRole,
    actor_from_payload,
    create_access_token,
    decode_access_token,
)


def test_token_round_trip():
    """Test a minted token decodes to its claims."""
    token = create_access_token({"sub": "patient-1", "role": "patient"})
    payload = decode_access_token(token)

    assert payload is not None
    assert payload["sub"] == "patient-1"
    assert payload["type"] == "access"


def test_expired_token_is_rejected():
    """Test expired tokens do not decode."""
    token = create_access_token({"sub": "patient-1"}, expires_delta=timedelta(seconds=-1))
    assert decode_access_token(token) is None


def test_actor_from_payload():
    """Test actors are built from subject, role and optional email."""
    actor = actor_from_payload({"sub": "p1", "role": "patient", "email": "a@example.com"})
    assert actor == Actor(subject="p1", role=ActorRole.PATIENT, email="a@example.com")
    assert actor.is_patient
    assert not actor.is_staff

    staff = actor_from_payload({"sub": "d1", "role": "provider"})
    assert staff.is_staff
    assert staff.email is None


def test_actor_from_payload_missing_claims():
    """Test unknown roles and missing subjects yield no actor."""
    assert actor_from_payload({"role": "patient"}) is None
    assert actor_from_payload({"sub": "p1", "role": "superuser"}) is None
    assert actor_from_payload({"sub": "p1"}) is None
