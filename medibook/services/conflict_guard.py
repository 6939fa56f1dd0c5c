"""Slot occupancy checks."""

from datetime import date
from uuid import UUID

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from medibook.models.appointments import appointments
from medibook.services.status_machine import LIVE_STATUSES

_LIVE_VALUES = sorted(status.value for status in LIVE_STATUSES)


class ConflictGuard:
    """
    Answers whether a (doctor, date, slot) triple is held by a live appointment.

    Callers that go on to write must run the check on the same session and
    inside the same transaction as the write.
    """

    def __init__(self, db: AsyncSession):
        """Initialize guard with database session."""
        self.db = db

    async def is_occupied(
        self,
        doctor_id: UUID,
        appointment_date: date,
        time_slot: str,
        exclude_appointment_id: UUID | None = None,
    ) -> bool:
        """
        Check if a slot is taken.

        Args:
            doctor_id: Doctor ID
            appointment_date: Calendar date
            time_slot: Slot label
            exclude_appointment_id: Appointment to ignore (the one being moved)

        Returns:
            True if a scheduled or rescheduled appointment holds the slot
        """
        conditions = [
            appointments.c.doctor_id == doctor_id,
            appointments.c.date == appointment_date,
            appointments.c.time_slot == time_slot,
            appointments.c.status.in_(_LIVE_VALUES),
        ]
        if exclude_appointment_id is not None:
            conditions.append(appointments.c.id != exclude_appointment_id)

        stmt = select(appointments.c.id).where(and_(*conditions)).limit(1)
        result = await self.db.execute(stmt)
        return result.first() is not None

    async def occupied_slots(self, doctor_id: UUID, appointment_date: date) -> set[str]:
        """Get every slot label held by a live appointment for the doctor on that day."""
        stmt = select(appointments.c.time_slot).where(
            and_(
                appointments.c.doctor_id == doctor_id,
                appointments.c.date == appointment_date,
                appointments.c.status.in_(_LIVE_VALUES),
            )
        )
        result = await self.db.execute(stmt)
        return set(result.scalars().all())
