"""Database configuration and connection management."""

from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from medibook.config import settings


def get_async_database_url(url: str) -> str:
    """Convert a sync database URL to its async driver equivalent."""
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if url.startswith("sqlite://"):
        return url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    return url


def is_sqlite_url(url: str) -> bool:
    """Check whether the URL points at a SQLite database."""
    return url.startswith("sqlite")


def configure_sqlite_engine(async_engine: AsyncEngine) -> None:
    """
    Make every SQLite transaction take the write lock up front.

    pysqlite defers BEGIN until the first DML statement, so a conflict check
    and the insert that follows it would run outside one transaction. Issuing
    BEGIN IMMEDIATE ourselves serialises units of work the way row locks do
    on PostgreSQL.
    """

    @event.listens_for(async_engine.sync_engine, "connect")
    def disable_driver_begin(dbapi_conn: Any, connection_record: Any) -> None:
        dbapi_conn.isolation_level = None

    @event.listens_for(async_engine.sync_engine, "begin")
    def begin_immediate(conn: Any) -> None:
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def build_engine(url: str, **kwargs: Any) -> AsyncEngine:
    """Create an async engine for the given URL with dialect specific tuning."""
    async_url = get_async_database_url(url)

    if is_sqlite_url(async_url):
        async_engine = create_async_engine(async_url, echo=settings.debug, **kwargs)
        configure_sqlite_engine(async_engine)
        return async_engine

    options: dict[str, Any] = {
        "pool_pre_ping": True,
        "pool_size": 10,
        "max_overflow": 20,
        "pool_recycle": 3600,
        "connect_args": {
            "server_settings": {
                "application_name": settings.app_name,
            },
        },
    }
    options.update(kwargs)
    return create_async_engine(async_url, echo=settings.debug, **options)


# Create async engine with connection pooling
engine: AsyncEngine = build_engine(settings.database_url)

# Async session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency for getting async database sessions."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def check_database_connection() -> bool:
    """Check if database connection is healthy."""
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception:
        return False
