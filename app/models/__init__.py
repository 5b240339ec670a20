"""Database models."""

from app.models.appointments import appointments
from app.models.base import metadata
from app.models.providers import providers

__all__ = [
    "appointments",
    "metadata",
    "providers",
]
