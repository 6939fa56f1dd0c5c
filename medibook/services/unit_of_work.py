"""Transaction boundary shared by scheduler services."""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from medibook.config import settings
from medibook.core.exceptions import SlotConflictException, StoreUnavailableException

logger = structlog.get_logger(__name__)


async def _rollback(db: AsyncSession, operation: str) -> None:
    try:
        await db.rollback()
    except Exception as e:
        logger.warning("rollback_failed", operation=operation, error=str(e))


@asynccontextmanager
async def transaction(
    db: AsyncSession,
    operation: str,
    timeout: float | None = None,
) -> AsyncIterator[AsyncSession]:
    """
    Run the enclosed block as one atomic unit of work.

    Commits when the block exits normally and rolls back otherwise, so the
    block is never partially applied.

    Args:
        db: Database session
        operation: Name used in log events
        timeout: Seconds before the unit of work is abandoned

    Raises:
        SlotConflictException: If a uniqueness constraint rejected the write
        StoreUnavailableException: If the database timed out or was unreachable
    """
    try:
        async with asyncio.timeout(timeout or settings.store_timeout_seconds):
            yield db
            await db.commit()
    except IntegrityError as e:
        await _rollback(db, operation)
        logger.info("unique_constraint_violation", operation=operation, error=str(e.orig))
        raise SlotConflictException() from e
    except (TimeoutError, OperationalError, InterfaceError) as e:
        await _rollback(db, operation)
        logger.error("store_unavailable", operation=operation, error=str(e))
        raise StoreUnavailableException() from e
    except BaseException:
        await _rollback(db, operation)
        raise
