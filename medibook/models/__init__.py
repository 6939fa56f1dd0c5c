"""Database models."""

from medibook.models.appointments import appointments
from medibook.models.doctors import doctors
from medibook.models.patients import patients
from medibook.models.prescriptions import prescriptions

__all__ = [
    "appointments",
    "doctors",
    "patients",
    "prescriptions",
]
