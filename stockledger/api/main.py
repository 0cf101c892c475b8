"""
FastAPI application for the stock ledger service.

Startup applies pending migrations and logs any failed ledger integrity
check; /docs and /redoc are served only with API_DEBUG=true.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from stockledger.api.middleware import ErrorHandlerMiddleware, LoggingMiddleware
from stockledger.api.middleware.error_handler import setup_exception_handlers
from stockledger.api.routes import catalog_router, health_router, inventory_router
from stockledger.config import configure_logging, get_logger, get_settings

logger = get_logger(__name__)


async def _prepare_database() -> None:
    """Migrate, open the pool and report ledger integrity problems."""
    from stockledger.infrastructure.storage.sqlite import get_pool
    from stockledger.infrastructure.storage.sqlite.migrations import (
        run_migrations,
        verify_schema_integrity,
    )

    results = await run_migrations()
    failed = [r.version for r in results if not r.success]
    if failed:
        raise RuntimeError(f"Migrations failed: {failed}")
    logger.info("database_migrated", applied=[r.version for r in results])

    pool = await get_pool()

    # Reported only; startup continues
    for check in await verify_schema_integrity(pool.db_path):
        if check["status"] != "PASS":
            logger.warning("ledger_integrity_check_failed", **check)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Prepare the database on startup; close the pool on shutdown."""
    from stockledger.infrastructure.storage.sqlite import close_pool

    settings = get_settings()
    logger.info(
        "application_starting",
        host=settings.api.host,
        port=settings.api.port,
        environment=settings.environment,
    )

    try:
        await _prepare_database()
    except Exception as e:
        logger.error("database_init_failed", error=str(e))
        raise

    logger.info("application_started")
    yield

    await close_pool()
    logger.info("application_stopped")


def create_app() -> FastAPI:
    """
    Create and configure FastAPI application.

    Returns:
        Configured FastAPI instance
    """
    settings = get_settings()
    configure_logging()

    app = FastAPI(
        title=settings.app_name,
        description="Append-only stock ledger with catalog, balances and reorder alerts",
        version=settings.app_version,
        docs_url="/docs" if settings.api.debug else None,
        redoc_url="/redoc" if settings.api.debug else None,
        lifespan=lifespan,
    )

    app.add_middleware(LoggingMiddleware)
    app.add_middleware(ErrorHandlerMiddleware)

    if settings.api.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.api.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    setup_exception_handlers(app)

    app.include_router(health_router)
    app.include_router(catalog_router)
    app.include_router(inventory_router)

    return app


app = create_app()


# Unprefixed liveness check for container orchestrators
@app.get("/health")
async def root_health() -> dict[str, str]:
    return {
        "status": "healthy",
        "version": get_settings().app_version,
    }

