"""Liveness and readiness probes."""

from fastapi import APIRouter, Response, status
from pydantic import BaseModel

from app.config import settings
from app.core.redis_client import check_redis_connection
from app.database import check_database_connection

router = APIRouter()

HEALTHY = "healthy"
DEGRADED = "degraded"
UNHEALTHY = "unhealthy"


class HealthResponse(BaseModel):
    """Liveness payload."""

    status: str
    version: str
    environment: str
    clinic_timezone: str


class DetailedHealthResponse(HealthResponse):
    """Readiness payload with one entry per backing service."""

    components: dict[str, str]


def _overall(database_ok: bool, cache_ok: bool) -> str:
    # Bookings need the database; the provider cache is optional
    if not database_ok:
        return UNHEALTHY
    return HEALTHY if cache_ok else DEGRADED


@router.get("/health", response_model=HealthResponse, summary="Liveness probe")
async def health_check() -> HealthResponse:
    """Report that the process is up, without touching backing services."""
    return HealthResponse(
        status=HEALTHY,
        version=settings.app_version,
        environment=settings.environment,
        clinic_timezone=settings.clinic_timezone,
    )


@router.get(
    "/health/detailed",
    response_model=DetailedHealthResponse,
    summary="Readiness probe",
    responses={503: {"model": DetailedHealthResponse}},
)
async def detailed_health_check(response: Response) -> DetailedHealthResponse:
    """
    Check the database and the provider cache.

    Answers 503 when the database is unreachable so load balancers stop
    routing bookings here; a cache outage only reports ``degraded``.
    """
    database_ok = await check_database_connection()
    cache_ok = await check_redis_connection()

    overall = _overall(database_ok, cache_ok)
    if overall == UNHEALTHY:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return DetailedHealthResponse(
        status=overall,
        version=settings.app_version,
        environment=settings.environment,
        clinic_timezone=settings.clinic_timezone,
        components={
            "database": HEALTHY if database_ok else UNHEALTHY,
            "cache": HEALTHY if cache_ok else UNHEALTHY,
        },
    )


@router.get("/ping", summary="Simple ping")
async def ping() -> dict[str, str]:
    """Pong."""
    return {"message": "pong"}
