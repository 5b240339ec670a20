"""Create providers and appointments tables.

Revision ID: 001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ACTIVE_SLOT_PREDICATE = sa.text("status <> 'cancelled'")


def upgrade() -> None:
    """Upgrade database schema."""
    op.create_table(
        "providers",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("specialization", sa.String(length=200), nullable=True),
        sa.Column("email", sa.String(length=320), nullable=True),
        sa.Column("image_url", sa.Text(), nullable=True),
        sa.Column("experience_years", sa.Integer(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("availability", sa.JSON(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )
    op.create_index("ix_providers_specialization", "providers", ["specialization"])

    op.create_table(
        "appointments",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("provider_id", sa.Uuid(), nullable=False),
        sa.Column("provider_name", sa.Text(), nullable=False),
        sa.Column("scheduled_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("patient_name", sa.Text(), nullable=False),
        sa.Column("patient_email", sa.String(length=320), nullable=False),
        sa.Column("patient_phone", sa.String(length=30), nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=20), server_default="pending", nullable=False),
        sa.Column("flow_status", sa.String(length=20), nullable=True),
        sa.Column(
            "notification_state",
            sa.String(length=20),
            server_default="acknowledged",
            nullable=False,
        ),
        sa.Column("meeting_link", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column("confirmed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "status IN ('pending', 'confirmed', 'cancelled')",
            name="appointments_status_check",
        ),
        sa.CheckConstraint(
            "flow_status IS NULL OR flow_status IN "
            "('checked_in', 'vitals', 'consulting', 'complete')",
            name="appointments_flow_status_check",
        ),
        sa.CheckConstraint(
            "notification_state IN ('unread', 'acknowledged')",
            name="appointments_notification_state_check",
        ),
        sa.ForeignKeyConstraint(["provider_id"], ["providers.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )

    # One live booking per provider and instant; cancelled rows free the slot
    op.create_index(
        "uq_appointments_provider_slot_active",
        "appointments",
        ["provider_id", "scheduled_at"],
        unique=True,
        postgresql_where=ACTIVE_SLOT_PREDICATE,
        sqlite_where=ACTIVE_SLOT_PREDICATE,
    )
    op.create_index(
        "idx_appointments_provider_scheduled", "appointments", ["provider_id", "scheduled_at"]
    )
    op.create_index("idx_appointments_patient_email", "appointments", ["patient_email"])
    op.create_index("idx_appointments_status", "appointments", ["status"])


def downgrade() -> None:
    """Downgrade database schema."""
    op.drop_index("idx_appointments_status", table_name="appointments")
    op.drop_index("idx_appointments_patient_email", table_name="appointments")
    op.drop_index("idx_appointments_provider_scheduled", table_name="appointments")
    op.drop_index("uq_appointments_provider_slot_active", table_name="appointments")
    op.drop_table("appointments")

    op.drop_index("ix_providers_specialization", table_name="providers")
    op.drop_table("providers")
