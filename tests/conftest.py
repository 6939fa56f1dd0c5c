from collections.abc import AsyncGenerator
from datetime import date, timedelta
from unittest.mock import MagicMock
from uuid import uuid4

import pytest
import pytest_asyncio
from dotenv import load_dotenv
from httpx import ASGITransport, AsyncClient
from sqlalchemy import MetaData, insert
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool

# Load environment variables from .env file
load_dotenv()

from medibook.core.redis_client import CacheManager
from medibook.database import build_engine, get_db
from medibook.dependencies import get_cache_manager, get_change_notifier
from medibook.main import app
from medibook.models.appointments import metadata as appointments_metadata
from medibook.models.doctors import doctors
from medibook.models.doctors import metadata as doctors_metadata
from medibook.models.patients import metadata as patients_metadata
from medibook.models.patients import patients
from medibook.models.prescriptions import metadata as prescriptions_metadata
from medibook.schemas.appointments import AppointmentEvent
from medibook.services.change_notifier import InMemoryChangeNotifier

# Combine all metadata
metadata = MetaData()
for table_metadata in (
    appointments_metadata,
    doctors_metadata,
    patients_metadata,
    prescriptions_metadata,
):
    for table in table_metadata.tables.values():
        table.to_metadata(metadata)


@pytest_asyncio.fixture
async def test_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """Create a fresh SQLite file database per test."""
    # NullPool gives every session its own connection, like separate clients
    url = f"sqlite+aiosqlite:///{tmp_path / 'medibook_test.db'}"
    engine = build_engine(url, poolclass=NullPool)

    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the test database."""
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def booking_date() -> date:
    """A bookable day in the near future."""
    return date.today() + timedelta(days=1)


async def _insert_doctor(db: AsyncSession, name: str, is_available: bool = True) -> dict:
    doctor = {
        "id": uuid4(),
        "name": name,
        "specialty": "General Physician",
        "location": "Delhi",
        "is_available": is_available,
    }
    await db.execute(insert(doctors).values(**doctor))
    await db.commit()
    return doctor


async def _insert_patient(db: AsyncSession, full_name: str) -> dict:
    patient = {"id": uuid4(), "full_name": full_name, "phone": "+911234567890"}
    await db.execute(insert(patients).values(**patient))
    await db.commit()
    return patient


@pytest_asyncio.fixture
async def doctor(db_session: AsyncSession) -> dict:
    """A doctor accepting bookings."""
    return await _insert_doctor(db_session, "Dr. Raj Singh")


@pytest_asyncio.fixture
async def other_doctor(db_session: AsyncSession) -> dict:
    """A second doctor with an independent calendar."""
    return await _insert_doctor(db_session, "Dr. Meera Iyer")


@pytest_asyncio.fixture
async def unavailable_doctor(db_session: AsyncSession) -> dict:
    """A doctor who is not accepting bookings."""
    return await _insert_doctor(db_session, "Dr. On Leave", is_available=False)


@pytest_asyncio.fixture
async def patient(db_session: AsyncSession) -> dict:
    """First test patient."""
    return await _insert_patient(db_session, "John Sharma")


@pytest_asyncio.fixture
async def second_patient(db_session: AsyncSession) -> dict:
    """Second test patient."""
    return await _insert_patient(db_session, "Priya Verma")


@pytest.fixture
def notifier() -> InMemoryChangeNotifier:
    """In-process change notifier."""
    return InMemoryChangeNotifier(channel_prefix="appointments")


@pytest.fixture
def published_events(notifier: InMemoryChangeNotifier) -> list[AppointmentEvent]:
    """Every event published through the test notifier, in order."""
    events: list[AppointmentEvent] = []
    notifier.subscribe(events.append)
    return events


@pytest_asyncio.fixture
async def client(
    db_session: AsyncSession,
    notifier: InMemoryChangeNotifier,
) -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    # Cache always misses
    cache_redis = MagicMock()
    cache_redis.get.return_value = None

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_change_notifier] = lambda: notifier
    app.dependency_overrides[get_cache_manager] = lambda: CacheManager(cache_redis)

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
