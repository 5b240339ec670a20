"""Appointments table model using SQLAlchemy Core."""

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    String,
    Table,
    Text,
    Uuid,
    text,
)

from app.models.base import metadata

ACTIVE_SLOT_PREDICATE = text("status <> 'cancelled'")

# Appointments table
appointments = Table(
    "appointments",
    metadata,
    Column("id", Uuid(as_uuid=True), primary_key=True),
    # Ownership / references
    Column(
        "provider_id",
        Uuid(as_uuid=True),
        ForeignKey("providers.id", ondelete="RESTRICT"),
        nullable=False,
    ),
    # Snapshot field (denormalized for history)
    Column("provider_name", Text, nullable=False),
    # Scheduled instant, always stored as UTC
    Column("scheduled_at", DateTime(timezone=True), nullable=False),
    # Patient contact
    Column("patient_name", Text, nullable=False),
    Column("patient_email", String(320), nullable=False),
    Column("patient_phone", String(30), nullable=False),
    Column("reason", Text, nullable=True),
    # Status management
    Column("status", String(20), nullable=False, server_default="pending"),
    Column("flow_status", String(20), nullable=True),
    Column(
        "notification_state",
        String(20),
        nullable=False,
        server_default="acknowledged",
    ),
    Column("meeting_link", Text, nullable=True),
    # Audit fields
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
    Column("confirmed_at", DateTime(timezone=True), nullable=True),
    Column("cancelled_at", DateTime(timezone=True), nullable=True),
    # Constraints
    CheckConstraint(
        "status IN ('pending', 'confirmed', 'cancelled')",
        name="appointments_status_check",
    ),
    CheckConstraint(
        "flow_status IS NULL OR flow_status IN ('checked_in', 'vitals', 'consulting', 'complete')",
        name="appointments_flow_status_check",
    ),
    CheckConstraint(
        "notification_state IN ('unread', 'acknowledged')",
        name="appointments_notification_state_check",
    ),
    # At most one non-cancelled appointment per provider and instant
    Index(
        "uq_appointments_provider_slot_active",
        "provider_id",
        "scheduled_at",
        unique=True,
        postgresql_where=ACTIVE_SLOT_PREDICATE,
        sqlite_where=ACTIVE_SLOT_PREDICATE,
    ),
    Index("idx_appointments_provider_scheduled", "provider_id", "scheduled_at"),
    Index("idx_appointments_patient_email", "patient_email"),
    Index("idx_appointments_status", "status"),
)
