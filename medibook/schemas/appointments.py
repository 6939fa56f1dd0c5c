"""Appointment schemas for request/response validation."""

from datetime import date, datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


class AppointmentStatus(str, Enum):
    """Appointment status enumeration."""

    SCHEDULED = "scheduled"
    RESCHEDULED = "rescheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class AppointmentEventType(str, Enum):
    """Kind of mutation an appointment event describes."""

    CREATED = "created"
    RESCHEDULED = "rescheduled"
    STATUS_CHANGED = "status_changed"
    DELETED = "deleted"


class SlotRequest(BaseModel):
    """Date and time slot pair shared by booking and rescheduling."""

    date: date
    time_slot: str = Field(..., min_length=1, max_length=20)

    @field_validator("time_slot")
    @classmethod
    def normalize_time_slot(cls, v: str) -> str:
        """Collapse surrounding and repeated whitespace in the slot label."""
        return " ".join(v.split())


class AppointmentCreate(SlotRequest):
    """Schema for booking a new appointment."""

    doctor_id: UUID
    patient_id: UUID
    idempotency_key: str | None = Field(None, min_length=1, max_length=100)


class AppointmentReschedule(SlotRequest):
    """Schema for moving an appointment to a new date and slot."""


class AppointmentStatusUpdate(BaseModel):
    """Schema for updating appointment status."""

    status: AppointmentStatus


class AppointmentResponse(BaseModel):
    """Schema for appointment response."""

    id: UUID
    doctor_id: UUID
    patient_id: UUID
    date: date
    time_slot: str
    status: AppointmentStatus
    version: int
    created_at: datetime
    updated_at: datetime
    cancelled_at: datetime | None = None
    completed_at: datetime | None = None
    has_prescription: bool = False

    model_config = {"from_attributes": True}


class AppointmentListResponse(BaseModel):
    """Schema for appointment list response."""

    total: int
    items: list[AppointmentResponse]


class AppointmentFilters(BaseModel):
    """Schema for appointment filtering."""

    status: AppointmentStatus | None = None
    from_date: date | None = None
    to_date: date | None = None


class AppointmentEvent(BaseModel):
    """Change notification published after an appointment mutation commits."""

    event_type: AppointmentEventType
    appointment_id: UUID
    doctor_id: UUID
    patient_id: UUID
    status: AppointmentStatus
    date: date
    time_slot: str
    version: int
    occurred_at: datetime
