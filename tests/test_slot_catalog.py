"""Tests for slot derivation."""

import json
from unittest.mock import MagicMock
from uuid import uuid4

import pytest

from medibook.config import settings
from medibook.core.exceptions import NotFoundException
from medibook.core.redis_client import CacheManager
from medibook.schemas.appointments import (
    AppointmentCreate,
    AppointmentStatus,
    AppointmentStatusUpdate,
)
from medibook.services.appointment_service import AppointmentService
from medibook.services.doctor_service import DoctorService
from medibook.services.slot_catalog import SlotCatalog, slot_position


def test_default_template() -> None:
    """The default template is the booking screen's twelve slots, in order."""
    template = settings.slot_template
    assert len(template) == 12
    assert template[0] == "10:00 AM"
    assert template[-1] == "5:30 PM"
    assert template.index("1:30 PM") < template.index("4:00 PM")


def test_slot_position() -> None:
    """Unknown labels sort after every template slot."""
    template = ["10:00 AM", "1:00 PM"]
    assert slot_position("1:00 PM", template) == 1
    assert slot_position("9:00 PM", template) == 2


@pytest.mark.asyncio
async def test_all_slots_free(db_session, doctor, booking_date):
    """An empty day offers the whole template."""
    catalog = SlotCatalog(db_session)

    assert await catalog.available_slots(doctor["id"], booking_date) == settings.slot_template


@pytest.mark.asyncio
async def test_live_appointments_hide_slots(db_session, doctor, patient, booking_date):
    """Scheduled slots disappear; cancelled ones come back."""
    service = AppointmentService(db_session)
    catalog = SlotCatalog(db_session)

    appointment = await service.create_appointment(
        AppointmentCreate(
            doctor_id=doctor["id"],
            patient_id=patient["id"],
            date=booking_date,
            time_slot="10:30 AM",
        )
    )
    free = await catalog.available_slots(doctor["id"], booking_date)
    assert "10:30 AM" not in free
    assert free == [slot for slot in settings.slot_template if slot != "10:30 AM"]

    await service.update_appointment_status(
        appointment.id, AppointmentStatusUpdate(status=AppointmentStatus.CANCELLED)
    )
    assert "10:30 AM" in await catalog.available_slots(doctor["id"], booking_date)


@pytest.mark.asyncio
async def test_unavailable_doctor_has_no_slots(db_session, unavailable_doctor, booking_date):
    """Doctors not accepting bookings expose nothing."""
    availability = await SlotCatalog(db_session).get_availability(
        unavailable_doctor["id"], booking_date
    )

    assert availability.is_available is False
    assert availability.slots == []


@pytest.mark.asyncio
async def test_unknown_doctor(db_session, booking_date):
    """Unknown doctors are reported as not found."""
    with pytest.raises(NotFoundException):
        await SlotCatalog(db_session).available_slots(uuid4(), booking_date)


@pytest.mark.asyncio
async def test_doctor_profile_cached(db_session, doctor, booking_date):
    """Slot browsing caches the doctor profile but never the slot list."""
    mock_redis = MagicMock()
    mock_redis.get.return_value = None
    catalog = SlotCatalog(db_session, DoctorService(cache_manager=CacheManager(mock_redis)))

    await catalog.available_slots(doctor["id"], booking_date)

    mock_redis.setex.assert_called_once()
    key, ttl, payload = mock_redis.setex.call_args.args
    assert key == f"doctor:{doctor['id']}"
    assert ttl == settings.doctor_cache_ttl
    assert json.loads(payload)["is_available"] is True

    # Cache hit skips the profile query
    mock_redis.reset_mock()
    mock_redis.get.return_value = payload
    assert await catalog.available_slots(doctor["id"], booking_date) == settings.slot_template
    mock_redis.setex.assert_not_called()
