"""Appointment service for business logic."""

from datetime import UTC, date, datetime
from typing import Any
from uuid import UUID, uuid4

import structlog
from sqlalchemy import and_, delete, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from medibook.config import settings
from medibook.core.exceptions import (
    DoctorUnavailableException,
    NotFoundException,
    SlotConflictException,
    ValidationException,
)
from medibook.models.appointments import appointments
from medibook.schemas.appointments import (
    AppointmentCreate,
    AppointmentEvent,
    AppointmentEventType,
    AppointmentFilters,
    AppointmentListResponse,
    AppointmentReschedule,
    AppointmentResponse,
    AppointmentStatus,
    AppointmentStatusUpdate,
)
from medibook.services.change_notifier import ChangeNotifier
from medibook.services.conflict_guard import ConflictGuard
from medibook.services.doctor_service import DoctorService
from medibook.services.prescription_service import PrescriptionLinkage
from medibook.services.slot_catalog import slot_position
from medibook.services.status_machine import (
    is_terminal,
    validate_delete,
    validate_status_update,
    validate_transition,
)
from medibook.services.unit_of_work import transaction

logger = structlog.get_logger(__name__)

STALE_WRITE_MESSAGE = "Appointment was changed by another request. Reload and try again."


def _utcnow() -> datetime:
    return datetime.now(UTC)


class AppointmentService:
    """Service owning appointment records and their lifecycle."""

    def __init__(
        self,
        db: AsyncSession,
        notifier: ChangeNotifier | None = None,
        doctor_service: DoctorService | None = None,
        slot_template: list[str] | None = None,
    ):
        """Initialize service with database session and change notifier."""
        self.db = db
        self.notifier = notifier
        self.doctors = doctor_service or DoctorService()
        self.guard = ConflictGuard(db)
        self.prescriptions = PrescriptionLinkage(db)
        self.slot_template = list(slot_template or settings.slot_template)

    async def create_appointment(self, data: AppointmentCreate) -> AppointmentResponse:
        """
        Book a new appointment.

        The doctor row is locked, the slot is checked and the row is inserted
        in one transaction. The partial unique index on live slots rejects
        any booking that slips past the check.

        Args:
            data: Appointment creation data

        Returns:
            Created appointment, or the original one when ``idempotency_key``
            matches an earlier booking

        Raises:
            NotFoundException: If doctor or patient does not exist
            DoctorUnavailableException: If doctor is not accepting bookings
            SlotConflictException: If the slot is already taken
            ValidationException: If the date or slot label is invalid
        """
        self._validate_slot(data.date, data.time_slot)

        try:
            async with transaction(self.db, "create_appointment"):
                if data.idempotency_key:
                    existing = await self._fetch_by_idempotency_key(data.idempotency_key)
                    if existing is not None:
                        return self._replay(existing, data)

                doctor = await self.doctors.require_doctor(self.db, data.doctor_id, for_update=True)
                if not doctor.is_available:
                    raise DoctorUnavailableException(f"{doctor.name} is not accepting appointments")

                if not await self.doctors.patient_exists(self.db, data.patient_id):
                    raise NotFoundException("Patient not found")

                if await self.guard.is_occupied(data.doctor_id, data.date, data.time_slot):
                    raise SlotConflictException()

                now = _utcnow()
                values: dict[str, Any] = {
                    "id": uuid4(),
                    "doctor_id": data.doctor_id,
                    "patient_id": data.patient_id,
                    "date": data.date,
                    "time_slot": data.time_slot,
                    "status": AppointmentStatus.SCHEDULED.value,
                    "version": 1,
                    "idempotency_key": data.idempotency_key,
                    "created_at": now,
                    "updated_at": now,
                }
                await self.db.execute(insert(appointments).values(**values))
        except SlotConflictException:
            # A concurrent retry with the same token may have won the insert
            if data.idempotency_key:
                async with transaction(self.db, "create_appointment_replay"):
                    existing = await self._fetch_by_idempotency_key(data.idempotency_key)
                if existing is not None:
                    return self._replay(existing, data)
            logger.info(
                "slot_conflict",
                doctor_id=str(data.doctor_id),
                date=data.date.isoformat(),
                time_slot=data.time_slot,
            )
            raise

        appointment = AppointmentResponse.model_validate(values)
        logger.info(
            "appointment_created",
            appointment_id=str(appointment.id),
            doctor_id=str(appointment.doctor_id),
            patient_id=str(appointment.patient_id),
        )

        await self._publish(AppointmentEventType.CREATED, appointment)
        return appointment

    async def get_appointment(self, appointment_id: UUID) -> AppointmentResponse:
        """
        Get appointment by ID.

        Raises:
            NotFoundException: If appointment not found
        """
        async with transaction(self.db, "get_appointment"):
            appointment = await self._fetch(appointment_id)
            linked = await self.prescriptions.linked_appointment_ids([appointment_id])

        return appointment.model_copy(update={"has_prescription": appointment_id in linked})

    async def reschedule_appointment(
        self,
        appointment_id: UUID,
        data: AppointmentReschedule,
    ) -> AppointmentResponse:
        """
        Move an appointment to a new date and slot.

        The old slot is freed by the same write that takes the new one.

        Args:
            appointment_id: Appointment ID
            data: New date and slot

        Returns:
            Updated appointment

        Raises:
            NotFoundException: If appointment not found
            InvalidTransitionException: If the appointment is completed or cancelled
            SlotConflictException: If the new slot is taken
            ValidationException: If the date or slot label is invalid
        """
        self._validate_slot(data.date, data.time_slot)

        async with transaction(self.db, "reschedule_appointment"):
            current = await self._fetch(appointment_id)
            validate_transition(current.status, AppointmentStatus.RESCHEDULED)

            # Serialise with other bookings for this doctor
            await self.doctors.require_doctor(self.db, current.doctor_id, for_update=True)

            if await self.guard.is_occupied(
                current.doctor_id,
                data.date,
                data.time_slot,
                exclude_appointment_id=appointment_id,
            ):
                logger.info(
                    "slot_conflict",
                    doctor_id=str(current.doctor_id),
                    date=data.date.isoformat(),
                    time_slot=data.time_slot,
                )
                raise SlotConflictException()

            updated = await self._write(
                current,
                {
                    "date": data.date,
                    "time_slot": data.time_slot,
                    "status": AppointmentStatus.RESCHEDULED.value,
                },
            )

        logger.info(
            "appointment_rescheduled",
            appointment_id=str(appointment_id),
            from_date=current.date.isoformat(),
            from_slot=current.time_slot,
            to_date=updated.date.isoformat(),
            to_slot=updated.time_slot,
        )

        await self._publish(AppointmentEventType.RESCHEDULED, updated)
        return updated

    async def update_appointment_status(
        self,
        appointment_id: UUID,
        data: AppointmentStatusUpdate,
    ) -> AppointmentResponse:
        """
        Update appointment status (cancel or complete).

        Repeating a completion or cancellation the appointment already has
        is a no-op, so retries are safe. Other same-status requests go
        through the transition rules and are rejected.

        Args:
            appointment_id: Appointment ID
            data: Status update data

        Returns:
            Updated appointment

        Raises:
            NotFoundException: If appointment not found
            InvalidTransitionException: If the status change is not allowed
        """
        async with transaction(self.db, "update_appointment_status"):
            current = await self._fetch(appointment_id)
            if current.status == data.status and is_terminal(data.status):
                return current

            target = validate_status_update(current.status, data.status)

            now = _utcnow()
            changes: dict[str, Any] = {"status": target.value}
            if target == AppointmentStatus.CANCELLED:
                changes["cancelled_at"] = now
            elif target == AppointmentStatus.COMPLETED:
                changes["completed_at"] = now

            updated = await self._write(current, changes, now=now)

        logger.info(
            "appointment_status_changed",
            appointment_id=str(appointment_id),
            old_status=current.status.value,
            new_status=updated.status.value,
        )

        await self._publish(AppointmentEventType.STATUS_CHANGED, updated)
        return updated

    async def delete_appointment(self, appointment_id: UUID) -> None:
        """
        Permanently delete a cancelled appointment.

        Raises:
            NotFoundException: If appointment not found
            InvalidTransitionException: If the appointment is not cancelled
        """
        async with transaction(self.db, "delete_appointment"):
            current = await self._fetch(appointment_id)
            validate_delete(current.status)

            stmt = delete(appointments).where(
                and_(
                    appointments.c.id == appointment_id,
                    appointments.c.version == current.version,
                )
            )
            result = await self.db.execute(stmt)
            if result.rowcount == 0:
                raise SlotConflictException(STALE_WRITE_MESSAGE)

        logger.info("appointment_deleted", appointment_id=str(appointment_id))

        await self._publish(
            AppointmentEventType.DELETED,
            current.model_copy(update={"version": current.version + 1}),
        )

    async def list_for_doctor(
        self,
        doctor_id: UUID,
        filters: AppointmentFilters | None = None,
    ) -> AppointmentListResponse:
        """List a doctor's appointments, optionally filtered by status and date range."""
        return await self._list(appointments.c.doctor_id == doctor_id, filters)

    async def list_for_patient(
        self,
        patient_id: UUID,
        filters: AppointmentFilters | None = None,
    ) -> AppointmentListResponse:
        """List a patient's appointments, optionally filtered by status and date range."""
        return await self._list(appointments.c.patient_id == patient_id, filters)

    async def _list(
        self,
        owner_condition: Any,
        filters: AppointmentFilters | None,
    ) -> AppointmentListResponse:
        filters = filters or AppointmentFilters()
        conditions = [owner_condition]

        if filters.status:
            conditions.append(appointments.c.status == filters.status.value)

        if filters.from_date:
            conditions.append(appointments.c.date >= filters.from_date)

        if filters.to_date:
            conditions.append(appointments.c.date <= filters.to_date)

        stmt = select(appointments).where(and_(*conditions)).order_by(appointments.c.date)

        async with transaction(self.db, "list_appointments"):
            result = await self.db.execute(stmt)
            rows = result.fetchall()
            items = [AppointmentResponse.model_validate(dict(row._mapping)) for row in rows]
            linked = await self.prescriptions.linked_appointment_ids(item.id for item in items)

        items = [
            item.model_copy(update={"has_prescription": item.id in linked}) for item in items
        ]
        items.sort(key=lambda item: (item.date, slot_position(item.time_slot, self.slot_template)))

        return AppointmentListResponse(total=len(items), items=items)

    async def _fetch(self, appointment_id: UUID) -> AppointmentResponse:
        stmt = select(appointments).where(appointments.c.id == appointment_id)
        result = await self.db.execute(stmt)
        row = result.fetchone()

        if not row:
            raise NotFoundException("Appointment not found")

        return AppointmentResponse.model_validate(dict(row._mapping))

    async def _fetch_by_idempotency_key(self, key: str) -> AppointmentResponse | None:
        stmt = select(appointments).where(appointments.c.idempotency_key == key)
        result = await self.db.execute(stmt)
        row = result.fetchone()
        return AppointmentResponse.model_validate(dict(row._mapping)) if row else None

    async def _write(
        self,
        current: AppointmentResponse,
        changes: dict[str, Any],
        now: datetime | None = None,
    ) -> AppointmentResponse:
        """Apply changes only if nobody else wrote the row since it was read."""
        values = {
            **changes,
            "version": current.version + 1,
            "updated_at": now or _utcnow(),
        }
        stmt = (
            update(appointments)
            .where(
                and_(
                    appointments.c.id == current.id,
                    appointments.c.version == current.version,
                )
            )
            .values(**values)
        )
        result = await self.db.execute(stmt)
        if result.rowcount == 0:
            raise SlotConflictException(STALE_WRITE_MESSAGE)

        return await self._fetch(current.id)

    def _replay(
        self, existing: AppointmentResponse, data: AppointmentCreate
    ) -> AppointmentResponse:
        same_booking = (
            existing.doctor_id == data.doctor_id
            and existing.patient_id == data.patient_id
            and existing.date == data.date
            and existing.time_slot == data.time_slot
        )
        if not same_booking:
            raise ValidationException("Idempotency key was already used for a different booking")

        logger.info("appointment_create_replayed", appointment_id=str(existing.id))
        return existing

    def _validate_slot(self, appointment_date: date, time_slot: str) -> None:
        if time_slot not in self.slot_template:
            raise ValidationException(f"Unknown time slot '{time_slot}'")

        if appointment_date < date.today():
            raise ValidationException("Cannot book appointments in the past")

    async def _publish(
        self,
        event_type: AppointmentEventType,
        appointment: AppointmentResponse,
    ) -> None:
        """Publish after commit. Failures are logged, never raised."""
        if self.notifier is None:
            return

        event = AppointmentEvent(
            event_type=event_type,
            appointment_id=appointment.id,
            doctor_id=appointment.doctor_id,
            patient_id=appointment.patient_id,
            status=appointment.status,
            date=appointment.date,
            time_slot=appointment.time_slot,
            version=appointment.version,
            occurred_at=_utcnow(),
        )

        try:
            await self.notifier.publish(event)
        except Exception as e:
            logger.warning(
                "failed_to_send_appointment_notification",
                appointment_id=str(appointment.id),
                event_type=event_type.value,
                error=str(e),
            )
