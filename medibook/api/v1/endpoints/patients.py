"""Patient appointment list endpoints."""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Query, status

from medibook.dependencies import DatabaseSession
from medibook.schemas.appointments import (
    AppointmentFilters,
    AppointmentListResponse,
    AppointmentStatus,
)
from medibook.services.appointment_service import AppointmentService

router = APIRouter()


@router.get(
    "/{patient_id}/appointments",
    response_model=AppointmentListResponse,
    status_code=status.HTTP_200_OK,
    tags=["Patients"],
    summary="List patient appointments",
)
async def list_patient_appointments(
    patient_id: UUID,
    db: DatabaseSession,
    status_filter: AppointmentStatus | None = Query(None, alias="status"),
    from_date: date | None = Query(None),
    to_date: date | None = Query(None),
) -> AppointmentListResponse:
    """
    List a patient's appointments.

    Each item carries ``has_prescription`` so the view can offer the
    prescription link.
    """
    filters = AppointmentFilters(status=status_filter, from_date=from_date, to_date=to_date)
    service = AppointmentService(db)
    return await service.list_for_patient(patient_id, filters)
