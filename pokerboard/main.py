"""FastAPI application entry point.

Pokerboard API - home poker game tracker
"""

import time
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from starlette.middleware.base import BaseHTTPMiddleware

from pokerboard import __version__
from pokerboard.api import api_router
from pokerboard.config import get_settings
from pokerboard.logging_config import bind_context, clear_context, configure_logging, get_logger
from pokerboard.middleware.prometheus import setup_prometheus
from pokerboard.middleware.sentry import init_sentry
from pokerboard.utils.db import close_db, engine, init_db
from pokerboard.utils.errors import register_exception_handlers
from pokerboard.utils.json_utils import ORJSONResponse

settings = get_settings()

configure_logging(
    log_level=settings.log_level,
    json_logs=settings.app_env == "production",
    app_env=settings.app_env,
)
logger = get_logger(__name__)

sentry_enabled = init_sentry(
    dsn=settings.sentry_dsn,
    environment=settings.sentry_environment or settings.app_env,
    release=__version__,
    traces_sample_rate=settings.sentry_traces_sample_rate
    if settings.app_env == "production"
    else 0.0,
    profiles_sample_rate=settings.sentry_profiles_sample_rate
    if settings.app_env == "production"
    else 0.0,
)
if sentry_enabled:
    logger.info("sentry_initialized")
elif settings.app_env == "production":
    logger.warning("sentry_dsn_missing")


# =============================================================================
# Lifespan Events
# =============================================================================


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Application lifespan handler for startup and shutdown events."""
    logger.info("app_starting", env=settings.app_env, version=__version__)
    await init_db()
    logger.info("database_connected")

    yield

    logger.info("app_shutting_down")
    await close_db()
    logger.info("database_closed")


# =============================================================================
# FastAPI Application
# =============================================================================


app = FastAPI(
    title="Pokerboard API",
    version=__version__,
    description="Home poker sessions: buy-ins, cash-outs and settlements",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
    default_response_class=ORJSONResponse,
)

prometheus_instrumentator = setup_prometheus(app, app_version=__version__)


# =============================================================================
# Middleware
# =============================================================================


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Tag every request with an X-Request-ID and log its completion."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        clear_context()
        bind_context(request_id=request_id)

        started = time.perf_counter()
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id

        logger.info(
            "request_completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 1),
        )
        return response


app.add_middleware(RequestIDMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-Request-ID", "X-Trace-ID"],
    expose_headers=["X-Request-ID"],
)

register_exception_handlers(app)


# =============================================================================
# Health Check Endpoints
# =============================================================================


async def _ping_database() -> None:
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))


@app.get("/health", tags=["Health"], summary="Health check endpoint")
async def health_check() -> dict[str, Any]:
    """Application health including database connectivity."""
    health_status = {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": __version__,
        "services": {"database": "unknown"},
    }

    try:
        await _ping_database()
        health_status["services"]["database"] = "healthy"
    except Exception as e:
        health_status["services"]["database"] = f"unhealthy: {e}"
        health_status["status"] = "degraded"
        logger.error("database_health_check_failed", error=str(e))

    return health_status


@app.get("/health/live", tags=["Health"], summary="Liveness probe")
async def liveness_probe() -> dict[str, str]:
    return {"status": "alive"}


@app.get("/health/ready", tags=["Health"], summary="Readiness probe")
async def readiness_probe():
    """Ready once the database answers."""
    try:
        await _ping_database()
    except Exception as e:
        logger.error("readiness_probe_failed", error=str(e))
        return ORJSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not ready", "error": str(e)},
        )
    return {"status": "ready"}


# =============================================================================
# API Routers
# =============================================================================


API_V1_PREFIX = "/api/v1"

app.include_router(api_router, prefix=API_V1_PREFIX)


@app.get("/", tags=["Root"], summary="API root endpoint")
async def root() -> dict[str, str]:
    return {
        "name": "Pokerboard API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
    }


def run() -> None:
    """Serve the app with uvicorn."""
    import uvicorn

    uvicorn.run(
        "pokerboard.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.app_debug,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
