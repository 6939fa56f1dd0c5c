"""Doctor calendar endpoints."""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Query, status

from medibook.dependencies import Cache, DatabaseSession
from medibook.schemas.appointments import (
    AppointmentFilters,
    AppointmentListResponse,
    AppointmentStatus,
)
from medibook.schemas.slots import SlotAvailabilityResponse
from medibook.services.appointment_service import AppointmentService
from medibook.services.doctor_service import DoctorService
from medibook.services.slot_catalog import SlotCatalog

router = APIRouter()


@router.get(
    "/{doctor_id}/slots",
    response_model=SlotAvailabilityResponse,
    status_code=status.HTTP_200_OK,
    tags=["Doctors"],
    summary="Free slots for a day",
)
async def get_available_slots(
    doctor_id: UUID,
    db: DatabaseSession,
    cache: Cache,
    day: date = Query(..., alias="date"),
) -> SlotAvailabilityResponse:
    """
    List the doctor's free slots for one day.

    Args:
        doctor_id: Doctor ID
        db: Database session
        cache: Profile cache
        day: Calendar date

    Returns:
        Ordered free slot labels
    """
    catalog = SlotCatalog(db, DoctorService(cache_manager=cache))
    return await catalog.get_availability(doctor_id, day)


@router.get(
    "/{doctor_id}/appointments",
    response_model=AppointmentListResponse,
    status_code=status.HTTP_200_OK,
    tags=["Doctors"],
    summary="List doctor appointments",
)
async def list_doctor_appointments(
    doctor_id: UUID,
    db: DatabaseSession,
    status_filter: AppointmentStatus | None = Query(None, alias="status"),
    from_date: date | None = Query(None),
    to_date: date | None = Query(None),
) -> AppointmentListResponse:
    """List the doctor's appointments for the calendar view."""
    filters = AppointmentFilters(status=status_filter, from_date=from_date, to_date=to_date)
    service = AppointmentService(db)
    return await service.list_for_doctor(doctor_id, filters)
