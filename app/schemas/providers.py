"""Provider schemas for request/response validation."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

WEEKDAY_TOKENS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
WEEKDAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

_TOKEN_LOOKUP = {
    **{token.lower(): token for token in WEEKDAY_TOKENS},
    **{name.lower(): token for name, token in zip(WEEKDAY_NAMES, WEEKDAY_TOKENS)},
}


def normalize_availability(days: list[str]) -> list[str]:
    """
    Normalize weekday names to canonical tokens.

    Accepts three-letter abbreviations or full names in any case, drops
    duplicates and orders the result Monday first.

    Raises:
        ValueError: If a value is not a recognizable weekday
    """
    tokens: set[str] = set()
    for day in days:
        token = _TOKEN_LOOKUP.get(day.strip().lower())
        if token is None:
            raise ValueError(f"Unknown weekday: {day!r}")
        tokens.add(token)
    return [token for token in WEEKDAY_TOKENS if token in tokens]


class ProviderBase(BaseModel):
    """Base provider schema with common fields."""

    name: str = Field(..., min_length=1, max_length=200)
    specialization: str | None = Field(None, max_length=200)
    email: str | None = Field(None, max_length=320)
    image_url: str | None = None
    experience_years: int | None = Field(None, ge=0)
    description: str | None = None
    availability: list[str] = Field(default_factory=list)

    @field_validator("availability")
    @classmethod
    def validate_availability(cls, v: list[str]) -> list[str]:
        """Normalize weekday tokens."""
        return normalize_availability(v)


class ProviderCreate(ProviderBase):
    """Schema for creating a provider."""


class ProviderUpdate(BaseModel):
    """Schema for updating a provider."""

    name: str | None = Field(None, min_length=1, max_length=200)
    specialization: str | None = Field(None, max_length=200)
    email: str | None = Field(None, max_length=320)
    image_url: str | None = None
    experience_years: int | None = Field(None, ge=0)
    description: str | None = None
    availability: list[str] | None = None

    @field_validator("availability")
    @classmethod
    def validate_availability(cls, v: list[str] | None) -> list[str] | None:
        """Normalize weekday tokens."""
        return normalize_availability(v) if v is not None else None


class ProviderResponse(ProviderBase):
    """Provider response schema."""

    id: UUID
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ProviderListResponse(BaseModel):
    """Paginated provider list."""

    total: int
    page: int
    page_size: int
    items: list[ProviderResponse]
