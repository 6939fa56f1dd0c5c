"""Appointment endpoints."""

from uuid import UUID

from fastapi import APIRouter, status

from medibook.dependencies import DatabaseSession, Notifier
from medibook.schemas.appointments import (
    AppointmentCreate,
    AppointmentReschedule,
    AppointmentResponse,
    AppointmentStatusUpdate,
)
from medibook.services.appointment_service import AppointmentService

router = APIRouter()


@router.post(
    "/",
    response_model=AppointmentResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Appointments"],
    summary="Book appointment",
)
async def create_appointment(
    data: AppointmentCreate,
    db: DatabaseSession,
    notifier: Notifier,
) -> AppointmentResponse:
    """
    Book a slot with a doctor.

    Returns 409 when the slot was taken first; the caller should fetch the
    free slots again and pick another one.
    """
    service = AppointmentService(db, notifier)
    return await service.create_appointment(data)


@router.get(
    "/{appointment_id}",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="Get appointment by ID",
)
async def get_appointment(
    appointment_id: UUID,
    db: DatabaseSession,
) -> AppointmentResponse:
    """Get a specific appointment by ID."""
    service = AppointmentService(db)
    return await service.get_appointment(appointment_id)


@router.post(
    "/{appointment_id}/reschedule",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="Reschedule appointment",
)
async def reschedule_appointment(
    appointment_id: UUID,
    data: AppointmentReschedule,
    db: DatabaseSession,
    notifier: Notifier,
) -> AppointmentResponse:
    """
    Move an appointment to another date and slot.

    Args:
        appointment_id: Appointment ID
        data: New date and slot
        db: Database session
        notifier: Change notifier

    Returns:
        Updated appointment
    """
    service = AppointmentService(db, notifier)
    return await service.reschedule_appointment(appointment_id, data)


@router.patch(
    "/{appointment_id}/status",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="Update appointment status",
)
async def update_appointment_status(
    appointment_id: UUID,
    data: AppointmentStatusUpdate,
    db: DatabaseSession,
    notifier: Notifier,
) -> AppointmentResponse:
    """Cancel or complete an appointment."""
    service = AppointmentService(db, notifier)
    return await service.update_appointment_status(appointment_id, data)


@router.delete(
    "/{appointment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    tags=["Appointments"],
    summary="Delete cancelled appointment",
)
async def delete_appointment(
    appointment_id: UUID,
    db: DatabaseSession,
    notifier: Notifier,
) -> None:
    """Permanently remove a cancelled appointment."""
    service = AppointmentService(db, notifier)
    await service.delete_appointment(appointment_id)
