"""Prescriptions table. Written by the prescription service; the scheduler only reads links."""

from sqlalchemy import Column, DateTime, Index, MetaData, String, Table, Text, Uuid, text

metadata = MetaData()

prescriptions = Table(
    "prescriptions",
    metadata,
    Column("id", Uuid(as_uuid=True), primary_key=True),
    Column("appointment_id", Uuid(as_uuid=True), nullable=False),
    Column("doctor_id", Uuid(as_uuid=True), nullable=False),
    Column("patient_id", Uuid(as_uuid=True), nullable=False),
    Column("medicine_name", String(200), nullable=False),
    Column("dosage", String(100)),
    Column("duration", String(100)),
    Column("notes", Text),
    Column(
        "created_at",
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
    ),
    Index("idx_prescriptions_appointment_id", "appointment_id"),
)
