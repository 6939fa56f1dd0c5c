"""Health check endpoints."""

from fastapi import APIRouter, Response, status
from pydantic import BaseModel

from medibook.config import settings
from medibook.core.redis_client import check_event_bus_connection, check_redis_connection
from medibook.database import check_database_connection

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    version: str
    environment: str


class DetailedHealthResponse(BaseModel):
    """Scheduler dependency report."""

    status: str
    version: str
    environment: str
    database: str
    event_bus: str
    profile_cache: str
    slots_per_day: int


def _state(healthy: bool) -> str:
    return "healthy" if healthy else "unhealthy"


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    tags=["Health"],
    summary="Basic health check",
)
async def health_check() -> HealthResponse:
    """
    Basic health check endpoint.

    Returns:
        Basic health status
    """
    return HealthResponse(
        status="healthy",
        version=settings.app_version,
        environment=settings.environment,
    )


@router.get(
    "/health/detailed",
    response_model=DetailedHealthResponse,
    status_code=status.HTTP_200_OK,
    tags=["Health"],
    summary="Detailed health check",
    responses={503: {"model": DetailedHealthResponse}},
)
async def detailed_health_check(response: Response) -> DetailedHealthResponse:
    """
    Report whether the scheduler can take bookings.

    The database is the only hard dependency: without it no slot can be
    checked or held, so the endpoint answers 503. Redis outages only stop
    change events and profile caching, which leaves the service degraded.

    Args:
        response: Outgoing response, used to set the status code

    Returns:
        Status of the database, the event bus and the profile cache
    """
    db_healthy = await check_database_connection()
    event_bus_healthy = await check_event_bus_connection()
    cache_healthy = await check_redis_connection()

    if not db_healthy:
        overall = "unhealthy"
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    elif event_bus_healthy and cache_healthy:
        overall = "healthy"
    else:
        overall = "degraded"

    return DetailedHealthResponse(
        status=overall,
        version=settings.app_version,
        environment=settings.environment,
        database=_state(db_healthy),
        event_bus=_state(event_bus_healthy),
        profile_cache=_state(cache_healthy),
        slots_per_day=len(settings.slot_template),
    )


@router.get(
    "/ping",
    status_code=status.HTTP_200_OK,
    tags=["Health"],
    summary="Simple ping",
)
async def ping() -> dict[str, str]:
    """
    Simple ping endpoint.

    Returns:
        Pong response
    """
    return {"message": "pong"}
