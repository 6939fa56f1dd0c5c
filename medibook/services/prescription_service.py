"""Prescription linkage used to annotate appointment listings."""

from collections.abc import Iterable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from medibook.models.prescriptions import prescriptions


class PrescriptionLinkage:
    """Advisory, read-only index of which appointments have a prescription."""

    def __init__(self, db: AsyncSession):
        """Initialize linkage with database session."""
        self.db = db

    async def has_prescription(self, appointment_id: UUID) -> bool:
        """Check whether a prescription was written for the appointment."""
        return appointment_id in await self.linked_appointment_ids([appointment_id])

    async def linked_appointment_ids(self, appointment_ids: Iterable[UUID]) -> set[UUID]:
        """Get the subset of appointment IDs that have at least one prescription."""
        ids = list(appointment_ids)
        if not ids:
            return set()

        stmt = (
            select(prescriptions.c.appointment_id)
            .where(prescriptions.c.appointment_id.in_(ids))
            .distinct()
        )
        result = await self.db.execute(stmt)
        return set(result.scalars().all())
