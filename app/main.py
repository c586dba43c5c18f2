"""
FastAPI Application Entrypoint
Main entry point for the weekly premium strategy engine.
"""

from contextlib import asynccontextmanager

import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sentry_sdk.integrations.fastapi import FastApiIntegration

from app.config import settings
from app.utils.cache import get_cache
from app.utils.logger import app_logger

# Initialize Sentry for error tracking
SENTRY_DSN = (settings.SENTRY_DSN or "").strip()

if SENTRY_DSN:
    sentry_sdk.init(
        dsn=SENTRY_DSN,
        environment=settings.ENVIRONMENT,
        traces_sample_rate=1.0 if settings.ENVIRONMENT == "development" else 0.1,
        integrations=[FastApiIntegration()],
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Closes the cache client on shutdown.
    """
    cache = get_cache()
    app_logger.info(f"Cache backend: {type(cache).__name__}")
    try:
        yield
    finally:
        await cache.close()


# Initialize FastAPI application
app = FastAPI(
    title="Weekly Premium Strategy Engine",
    description="Ranked short-dated options strategies from volatility, technicals and gamma exposure",
    version="0.1.0",
    lifespan=lifespan,
)


# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
async def root():
    """Root endpoint - API health check"""
    return {
        "status": "online",
        "service": "Weekly Premium Strategy Engine",
        "version": "0.1.0",
        "environment": settings.ENVIRONMENT,
    }


@app.get("/health")
async def health_check():
    """
    Health check endpoint for monitoring.
    Returns system status and component health.
    """
    health_status = {"status": "healthy", "cache": "not_configured"}

    if settings.redis_configured:
        cache = get_cache()
        probe_key = "health:probe"
        if await cache.set(probe_key, "ok", ttl=10):
            health_status["cache"] = "connected"
        else:
            # Cache is optional, don't degrade status
            health_status["cache"] = "error"
    else:
        health_status["cache"] = "memory"

    return health_status


# Register API routers
from app.api.v1.strategy_recommendation import router as strategy_router  # noqa: E402
from app.api.v1.volatility import router as volatility_router  # noqa: E402

app.include_router(strategy_router, prefix=settings.API_V1_PREFIX)
app.include_router(volatility_router, prefix=settings.API_V1_PREFIX)


def create_app() -> FastAPI:
    """
    FastAPI application factory used by Uvicorn's --factory option.

    Returns:
        FastAPI: Configured application instance.
    """
    return app
