"""Slot availability schemas."""

from datetime import date
from uuid import UUID

from pydantic import BaseModel


class SlotAvailabilityResponse(BaseModel):
    """Bookable slots for one doctor on one day."""

    doctor_id: UUID
    date: date
    is_available: bool
    slots: list[str]
