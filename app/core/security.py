"""Actor tokens: decoding bearer tokens into the acting party."""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Any

from jose import JWTError, jwt

from app.config import settings


class ActorRole(str, Enum):
    """Party performing a request."""

    PATIENT = "patient"
    PROVIDER = "provider"
    ADMIN = "admin"


@dataclass(frozen=True)
class Actor:
    """Authenticated caller as seen by the scheduling engine."""

    subject: str
    role: ActorRole
    email: str | None = None

    @property
    def is_patient(self) -> bool:
        return self.role == ActorRole.PATIENT

    @property
    def is_staff(self) -> bool:
        return self.role in (ActorRole.PROVIDER, ActorRole.ADMIN)


def create_access_token(
    data: dict[str, Any],
    expires_delta: timedelta | None = None,
) -> str:
    """
    Create a JWT access token.

    Tokens are normally minted by the identity service; this helper exists
    for scripts and tests sharing the same secret.

    Args:
        data: Payload data to encode
        expires_delta: Optional expiration time delta

    Returns:
        Encoded JWT token
    """
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.now(UTC) + expires_delta
    else:
        expire = datetime.now(UTC) + timedelta(minutes=settings.access_token_expire_minutes)

    to_encode.update(
        {
            "exp": expire,
            "iat": datetime.now(UTC),
            "type": "access",
        }
    )

    return jwt.encode(
        to_encode,
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )


def decode_access_token(token: str) -> dict[str, Any] | None:
    """
    Decode and validate a JWT access token.

    Args:
        token: JWT token to decode

    Returns:
        Decoded payload or None if invalid
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )

        # Verify token type
        if payload.get("type") != "access":
            return None

        return payload
    except JWTError:
        return None


def actor_from_payload(payload: dict[str, Any]) -> Actor | None:
    """Build an Actor from a decoded token payload, or None if claims are missing."""
    subject = payload.get("sub")
    role = payload.get("role")
    if not isinstance(subject, str) or not subject:
        return None
    try:
        actor_role = ActorRole(role)
    except ValueError:
        return None
    email = payload.get("email")
    return Actor(subject=subject, role=actor_role, email=email if isinstance(email, str) else None)
