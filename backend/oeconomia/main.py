"""
FastAPI main application.

Oeconomia dashboard backend API.
"""
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional
import logging
import time

from fastapi import FastAPI, Depends
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from oeconomia.config import settings
from oeconomia.database import AsyncSessionLocal, get_db
from oeconomia.dependencies import ServiceContainer
from oeconomia.api import blockchain_router
from oeconomia.seed import seed_database
from oeconomia.services.storage import DatabaseStorage

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)

# Health check cache (in-memory, short TTL)
_health_cache: Dict[str, Dict[str, Any]] = {}
_HEALTH_CACHE_TTL = 30  # seconds


def _get_cache_key() -> str:
    return f"health:{settings.environment}"


def _get_cached_health() -> Optional[Dict[str, Any]]:
    """Get cached health data if still valid."""
    cached = _health_cache.get(_get_cache_key())
    if cached is None:
        return None
    if time.time() - cached["timestamp"] >= _HEALTH_CACHE_TTL:
        del _health_cache[_get_cache_key()]
        return None
    logger.debug("Using cached health check data")
    return {**cached["data"], "cached": True}


def _cache_health_data(data: Dict[str, Any]) -> None:
    _health_cache[_get_cache_key()] = {
        "data": data,
        "timestamp": time.time()
    }


async def _seed_default_tokens() -> None:
    try:
        async with AsyncSessionLocal() as session:
            await seed_database(DatabaseStorage(session))
            await session.commit()
    except Exception as e:
        logger.error(f"Error seeding database: {e}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the service container, seed tokens, and release resources on shutdown."""
    logger.info(f"Starting {settings.app_name} in {settings.environment} mode")
    logger.info(f"Allowed origins: {settings.allowed_origins}")

    services = ServiceContainer(settings)
    await services.startup()
    app.state.services = services

    if settings.seed_on_startup:
        await _seed_default_tokens()

    yield

    logger.info(f"Shutting down {settings.app_name}")
    await services.shutdown()


def create_app() -> FastAPI:
    """Create the FastAPI application with middleware and routers."""
    application = FastAPI(
        title=settings.app_name,
        description="Portfolio dashboard for the Oeconomia token ecosystem",
        version="1.0.0",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
        lifespan=lifespan
    )

    # CORS middleware
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.include_router(blockchain_router)

    @application.get("/api/health")
    async def health_check(db: AsyncSession = Depends(get_db)):
        """Health check endpoint with database connectivity, cached for 30 seconds."""
        cached_health = _get_cached_health()
        if cached_health:
            return cached_health

        health_data = {
            "status": "healthy",
            "app": settings.app_name,
            "environment": settings.environment,
            "database": "unknown",
            "cached": False
        }

        try:
            await db.execute(text("SELECT 1"))
            health_data["database"] = "connected"
        except Exception as e:
            logger.warning(f"Database health check failed: {e}")
            await db.rollback()
            health_data["database"] = "connection_failed"
            health_data["database_error"] = f"Connection failed: {str(e)}"

        # Failures are cached as well
        _cache_health_data(health_data)
        return health_data

    @application.get("/")
    async def root():
        return {
            "message": "Oeconomia Dashboard API",
            "docs": "/api/docs",
            "health": "/api/health"
        }

    return application


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "oeconomia.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level=settings.log_level.lower()
    )
