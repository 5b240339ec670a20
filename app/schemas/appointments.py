"""Appointment schemas for request/response validation."""

from datetime import UTC, datetime
from enum import Enum
from uuid import UUID

from pydantic import AwareDatetime, BaseModel, EmailStr, Field, computed_field, field_validator


class AppointmentStatus(str, Enum):
    """Appointment status enumeration."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class FlowStatus(str, Enum):
    """Clinical visit flow of a confirmed appointment."""

    CHECKED_IN = "checked_in"
    VITALS = "vitals"
    CONSULTING = "consulting"
    COMPLETE = "complete"


class NotificationState(str, Enum):
    """Patient-facing notification flag."""

    UNREAD = "unread"
    ACKNOWLEDGED = "acknowledged"


class AppointmentBase(BaseModel):
    """Base appointment schema with patient-supplied fields."""

    patient_name: str = Field(..., min_length=1, max_length=200)
    patient_email: EmailStr
    patient_phone: str = Field(..., min_length=7, max_length=30)
    reason: str | None = Field(None, max_length=2000)

    @field_validator("patient_phone")
    @classmethod
    def validate_phone(cls, v: str) -> str:
        """Validate phone number format."""
        # Remove common separators
        cleaned = (
            v.replace("-", "").replace(" ", "").replace("(", "").replace(")", "").replace("+", "")
        )
        if not cleaned.isdigit():
            raise ValueError("Phone number must contain only digits and separators")
        if len(cleaned) < 7:
            raise ValueError("Phone number must have at least 7 digits")
        return v


class AppointmentCreate(AppointmentBase):
    """Schema for booking a new appointment."""

    provider_id: UUID
    scheduled_at: AwareDatetime = Field(
        ...,
        description="Exact instant of the slot, with an explicit UTC offset",
    )


class AppointmentStatusUpdate(BaseModel):
    """Schema for updating appointment status."""

    status: AppointmentStatus
    unread: bool | None = Field(
        None,
        description="Explicit notification flag; overrides the automatic unread marker",
    )


class AppointmentFlowUpdate(BaseModel):
    """Schema for updating the clinical flow of a confirmed appointment."""

    flow_status: FlowStatus


class AppointmentResponse(AppointmentBase):
    """Schema for appointment response."""

    id: UUID
    provider_id: UUID
    provider_name: str
    scheduled_at: datetime
    status: AppointmentStatus
    flow_status: FlowStatus | None = None
    notification_state: NotificationState
    meeting_link: str | None = None
    created_at: datetime
    updated_at: datetime
    confirmed_at: datetime | None = None
    cancelled_at: datetime | None = None

    model_config = {"from_attributes": True}

    @field_validator(
        "scheduled_at", "created_at", "updated_at", "confirmed_at", "cancelled_at"
    )
    @classmethod
    def ensure_utc(cls, v: datetime | None) -> datetime | None:
        """Attach UTC to naive timestamps read back from the store."""
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=UTC)
        return v

    @computed_field  # type: ignore[prop-decorator]
    @property
    def unread(self) -> bool:
        """Whether the patient has an unacknowledged status change."""
        return self.notification_state == NotificationState.UNREAD


class AppointmentListResponse(BaseModel):
    """Schema for paginated appointment list response."""

    total: int
    page: int
    page_size: int
    items: list[AppointmentResponse]


class AppointmentFilters(BaseModel):
    """Schema for appointment filtering."""

    provider_id: UUID | None = None
    patient_email: str | None = None
    status: AppointmentStatus | None = None
    from_date: datetime | None = None
    to_date: datetime | None = None
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=20, ge=1, le=100)


class MeetingLinkResponse(BaseModel):
    """Telemedicine link for a confirmed appointment."""

    appointment_id: UUID
    meeting_link: str
