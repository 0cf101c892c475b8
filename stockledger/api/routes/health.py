"""
Health check endpoints.
"""

import time

from fastapi import APIRouter, Depends

from stockledger.api.dependencies import get_app_settings
from stockledger.application.dto.responses import HealthResponse
from stockledger.config import Settings

router = APIRouter(prefix="/api/health", tags=["health"])

# Track startup time
_start_time = time.time()


@router.get("", response_model=HealthResponse)
async def health_check(settings: Settings = Depends(get_app_settings)) -> HealthResponse:
    """Service status and uptime."""
    return HealthResponse(
        status="healthy",
        version=settings.app_version,
        uptime_seconds=time.time() - _start_time,
    )


@router.get("/db", response_model=HealthResponse)
async def db_health(settings: Settings = Depends(get_app_settings)) -> HealthResponse:
    """
    Database health check.

    Runs a trivial query and reports the applied schema version.
    """
    from stockledger.infrastructure.storage.sqlite import get_pool
    from stockledger.infrastructure.storage.sqlite.migrations import get_current_version

    try:
        pool = await get_pool()
        async with pool.acquire() as conn:
            await conn.execute("SELECT 1")
            schema_version = await get_current_version(conn)
    except Exception as e:
        return HealthResponse(
            status="unhealthy",
            version=settings.app_version,
            uptime_seconds=time.time() - _start_time,
            database=f"error: {e}",
        )

    return HealthResponse(
        status="healthy",
        version=settings.app_version,
        uptime_seconds=time.time() - _start_time,
        database="sqlite",
        schema_version=schema_version,
    )
