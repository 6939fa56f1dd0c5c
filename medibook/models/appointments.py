"""Appointments table model using SQLAlchemy Core."""

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Uuid,
    text,
)

# Metadata for all tables
metadata = MetaData()

LIVE_STATUS_PREDICATE = "status IN ('scheduled', 'rescheduled')"

# Appointments table
appointments = Table(
    "appointments",
    metadata,
    # Assigned by the service, never reused
    Column("id", Uuid(as_uuid=True), primary_key=True),
    # References to externally owned profiles
    Column("doctor_id", Uuid(as_uuid=True), nullable=False),
    Column("patient_id", Uuid(as_uuid=True), nullable=False),
    # Slot
    Column("date", Date, nullable=False),
    Column("time_slot", String(20), nullable=False),
    # Status management
    Column("status", String(20), nullable=False, server_default="scheduled"),
    Column("version", Integer, nullable=False, server_default=text("1")),
    # Client supplied token so a retried booking does not double-book
    Column("idempotency_key", String(100), nullable=True, unique=True),
    # Audit fields
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
    Column("cancelled_at", DateTime(timezone=True), nullable=True),
    Column("completed_at", DateTime(timezone=True), nullable=True),
    # Constraints
    CheckConstraint(
        "status IN ('scheduled', 'rescheduled', 'cancelled', 'completed')",
        name="appointments_status_check",
    ),
    # At most one live appointment per doctor, date and slot
    Index(
        "uq_appointments_live_slot",
        "doctor_id",
        "date",
        "time_slot",
        unique=True,
        postgresql_where=text(LIVE_STATUS_PREDICATE),
        sqlite_where=text(LIVE_STATUS_PREDICATE),
    ),
    Index("idx_appointments_doctor_date", "doctor_id", "date"),
    Index("idx_appointments_patient_id", "patient_id"),
)
