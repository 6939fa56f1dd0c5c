"""Read access to doctor and patient profiles."""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from medibook.config import settings
from medibook.core.exceptions import NotFoundException
from medibook.core.redis_client import CacheManager
from medibook.models.doctors import doctors
from medibook.models.patients import patients
from medibook.schemas.doctors import DoctorProfile


class DoctorService:
    """Service for profile lookups. Profiles are owned elsewhere and never written here."""

    def __init__(self, cache_manager: CacheManager | None = None):
        """Initialize service with optional cache manager."""
        self.cache = cache_manager

    @staticmethod
    def _get_doctor_cache_key(doctor_id: UUID) -> str:
        """Generate cache key for doctor."""
        return f"doctor:{doctor_id}"

    async def get_doctor_by_id(
        self,
        db: AsyncSession,
        doctor_id: UUID,
        for_update: bool = False,
    ) -> DoctorProfile | None:
        """
        Get doctor by ID.

        Args:
            db: Database session
            doctor_id: Doctor ID
            for_update: Lock the doctor row for the rest of the transaction.
                Bypasses the cache.

        Returns:
            Doctor profile or None
        """
        if self.cache and not for_update:
            cached = self.cache.get_json(self._get_doctor_cache_key(doctor_id))
            if cached:
                return DoctorProfile.model_validate(cached)

        query = select(doctors).where(doctors.c.id == doctor_id)
        if for_update:
            query = query.with_for_update()

        result = await db.execute(query)
        row = result.mappings().first()

        if not row:
            return None

        doctor = DoctorProfile.model_validate(dict(row))

        if self.cache and not for_update:
            self.cache.set_json(
                self._get_doctor_cache_key(doctor_id),
                doctor.model_dump(mode="json"),
                ttl=settings.doctor_cache_ttl,
            )

        return doctor

    async def require_doctor(
        self,
        db: AsyncSession,
        doctor_id: UUID,
        for_update: bool = False,
    ) -> DoctorProfile:
        """Get doctor by ID or raise NotFoundException."""
        doctor = await self.get_doctor_by_id(db, doctor_id, for_update=for_update)
        if doctor is None:
            raise NotFoundException("Doctor not found")
        return doctor

    @staticmethod
    async def patient_exists(db: AsyncSession, patient_id: UUID) -> bool:
        """Check that a patient profile exists."""
        result = await db.execute(select(patients.c.id).where(patients.c.id == patient_id))
        return result.first() is not None
