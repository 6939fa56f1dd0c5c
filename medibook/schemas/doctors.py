"""Doctor profile schemas."""

from uuid import UUID

from pydantic import BaseModel


class DoctorProfile(BaseModel):
    """Read-only view of a doctor profile as the scheduler sees it."""

    id: UUID
    name: str
    specialty: str | None = None
    location: str | None = None
    photo_url: str | None = None
    is_available: bool

    model_config = {"from_attributes": True}
