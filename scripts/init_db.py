"""Create scheduler tables for local development and optionally seed demo profiles.

Production databases are migrated with ``alembic upgrade head`` instead.
"""

import argparse
import asyncio
from uuid import uuid4

from sqlalchemy import insert

from medibook.database import engine
from medibook.models.appointments import metadata as appointments_metadata
from medibook.models.doctors import doctors
from medibook.models.doctors import metadata as doctors_metadata
from medibook.models.patients import metadata as patients_metadata
from medibook.models.patients import patients
from medibook.models.prescriptions import metadata as prescriptions_metadata

DEMO_DOCTORS = [
    {"name": "Dr. Raj Singh", "specialty": "Cardiologist", "location": "Delhi"},
    {"name": "Dr. Meera Iyer", "specialty": "Dermatologist", "location": "Chennai"},
    {"name": "Dr. Arjun Rao", "specialty": "General Physician", "location": "Bengaluru"},
]


async def init_db(seed: bool) -> None:
    """Create all tables, then insert demo doctors and a patient if asked to."""
    async with engine.begin() as conn:
        for metadata in (
            doctors_metadata,
            patients_metadata,
            appointments_metadata,
            prescriptions_metadata,
        ):
            await conn.run_sync(metadata.create_all)

        if seed:
            await conn.execute(
                insert(doctors),
                [{"id": uuid4(), "is_available": True, **doctor} for doctor in DEMO_DOCTORS],
            )
            await conn.execute(
                insert(patients).values(id=uuid4(), full_name="John Sharma", blood_group="B+")
            )

    await engine.dispose()
    print("✓ Database initialized successfully!")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--seed", action="store_true", help="insert demo doctors and a patient")
    args = parser.parse_args()
    asyncio.run(init_db(args.seed))
