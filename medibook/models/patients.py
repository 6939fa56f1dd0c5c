"""Patient profile table. Owned by the profile service, read by the scheduler."""

from sqlalchemy import Column, DateTime, MetaData, String, Table, Uuid, text

metadata = MetaData()

patients = Table(
    "patients",
    metadata,
    Column("id", Uuid(as_uuid=True), primary_key=True),
    Column("full_name", String(200), nullable=False),
    Column("phone", String(20)),
    Column("blood_group", String(5)),
    Column(
        "created_at",
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
    ),
)
