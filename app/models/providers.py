"""Providers table model using SQLAlchemy Core."""

from sqlalchemy import JSON, Column, DateTime, Integer, String, Table, Text, Uuid, text

from app.models.base import metadata

providers = Table(
    "providers",
    metadata,
    Column("id", Uuid(as_uuid=True), primary_key=True),
    Column("name", Text, nullable=False),
    Column("specialization", String(200), index=True),
    Column("email", String(320), unique=True, nullable=True),
    Column("image_url", Text),
    Column("experience_years", Integer),
    Column("description", Text),
    # Recurring weekly availability as canonical tokens, e.g. ["Mon", "Wed", "Fri"]
    Column("availability", JSON, nullable=False),
    # Metadata
    Column(
        "created_at",
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
    ),
    Column(
        "updated_at",
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
    ),
)
