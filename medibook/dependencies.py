"""FastAPI dependencies."""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from medibook.core.redis_client import CacheManager, get_async_redis_client, get_redis_client
from medibook.database import get_db
from medibook.services.change_notifier import ChangeNotifier, RedisChangeNotifier


def get_change_notifier() -> ChangeNotifier:
    """Get the notifier appointment mutations are published through."""
    return RedisChangeNotifier(get_async_redis_client())


def get_cache_manager() -> CacheManager:
    """Get the Redis cache manager for profile lookups."""
    return CacheManager(get_redis_client())


# Type aliases for dependency injection
DatabaseSession = Annotated[AsyncSession, Depends(get_db)]
Notifier = Annotated[ChangeNotifier, Depends(get_change_notifier)]
Cache = Annotated[CacheManager, Depends(get_cache_manager)]
