"""Bookable slot derivation."""

from datetime import date
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from medibook.config import settings
from medibook.schemas.slots import SlotAvailabilityResponse
from medibook.services.conflict_guard import ConflictGuard
from medibook.services.doctor_service import DoctorService
from medibook.services.unit_of_work import transaction


def slot_position(time_slot: str, template: list[str] | None = None) -> int:
    """Position of a slot label in the template; unknown labels sort last."""
    slots = template if template is not None else settings.slot_template
    try:
        return slots.index(time_slot)
    except ValueError:
        return len(slots)


class SlotCatalog:
    """Derives the free slots of a doctor's day from the fixed template."""

    def __init__(
        self,
        db: AsyncSession,
        doctor_service: DoctorService | None = None,
        slot_template: list[str] | None = None,
    ):
        """Initialize catalog with database session and optional template override."""
        self.db = db
        self.doctors = doctor_service or DoctorService()
        self.slot_template = list(slot_template or settings.slot_template)

    async def get_availability(
        self,
        doctor_id: UUID,
        appointment_date: date,
    ) -> SlotAvailabilityResponse:
        """
        Compute free slots for a doctor on a given day.

        The result reflects the store at call time and is never cached, since
        concurrent bookings can change it at any moment. Rejecting past dates
        is left to the caller.

        Args:
            doctor_id: Doctor ID
            appointment_date: Calendar date

        Returns:
            Availability flag and ordered free slot labels

        Raises:
            NotFoundException: If doctor does not exist
        """
        async with transaction(self.db, "available_slots"):
            doctor = await self.doctors.require_doctor(self.db, doctor_id)
            if not doctor.is_available:
                free: list[str] = []
            else:
                occupied = await ConflictGuard(self.db).occupied_slots(doctor_id, appointment_date)
                free = [slot for slot in self.slot_template if slot not in occupied]

        return SlotAvailabilityResponse(
            doctor_id=doctor_id,
            date=appointment_date,
            is_available=doctor.is_available,
            slots=free,
        )

    async def available_slots(self, doctor_id: UUID, appointment_date: date) -> list[str]:
        """Get the ordered free slot labels for a doctor on a given day."""
        availability = await self.get_availability(doctor_id, appointment_date)
        return availability.slots
