"""
School Directory API - Main Application Entry Point

This module initializes and configures the FastAPI application including:
- Logging
- Database and Redis connections
- Background job scheduler
- Error handlers
- CORS middleware
- API routing and uploaded image serving
- Health check endpoints
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from school_directory.api import api_router
from school_directory.core.config import settings
from school_directory.core.database import close_db, init_db
from school_directory.core.errors import InternalError, ServiceError
from school_directory.core.redis import close_redis, init_redis, is_redis_available
from school_directory.core.scheduler import clear_registry, start_scheduler, stop_scheduler
from school_directory.modules.auth.jobs import register_auth_jobs

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Handles startup and shutdown events including:
    - Redis connection (optional outside production)
    - Database connection pool, stored on app.state.database
    - Background job scheduler
    """
    # Startup
    logger.info(f"Starting School Directory API in {settings.python_env} mode...")

    # Initialize Redis
    try:
        await init_redis()
        logger.info("[OK] Redis connected")
    except Exception as e:
        logger.warning(f"[FAIL] Redis connection failed, rate limits use memory: {e}")
        if settings.is_production:
            raise

    # Initialize Database
    app.state.database = await init_db(create_tables=settings.database_create_tables)
    logger.info("[OK] Database connected")

    if settings.storage_backend == "local":
        Path(settings.upload_dir).mkdir(parents=True, exist_ok=True)

    # Initialize Background Job Scheduler
    try:
        register_auth_jobs(app.state.database)
        await start_scheduler()
        logger.info("[OK] Background scheduler started")
    except Exception as e:
        logger.error(f"[FAIL] Background scheduler failed to start: {e}")
        if settings.is_production:
            raise

    yield  # Application runs here

    # Shutdown
    logger.info("Shutting down School Directory API...")

    # Stop the scheduler first (wait for running jobs)
    await stop_scheduler()
    clear_registry()
    logger.info("[OK] Background scheduler stopped")

    await close_redis()
    await close_db(app.state.database)
    logger.info("[OK] Cleanup complete")


# ============================================
# Error Handlers
# ============================================


async def service_error_handler(_request: Request, exc: ServiceError) -> JSONResponse:
    """Translate service errors into their HTTP status and JSON body."""
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.to_detail()})


def _describe_validation_errors(errors: list[dict[str, Any]]) -> dict[str, Any]:
    missing = [
        str(error["loc"][-1])
        for error in errors
        if error.get("type") == "missing" and error.get("loc")
    ]
    if missing:
        return {"message": "Missing required fields", "missingFields": missing}

    first = errors[0] if errors else {}
    message = str(first.get("msg", "Invalid request")).removeprefix("Value error, ")
    fields = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ())[1:]),
            "message": str(error.get("msg", "")).removeprefix("Value error, "),
        }
        for error in errors
    ]
    return {"message": message, "fields": fields}


async def validation_error_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
    """Request body/query validation failures are reported as 400."""
    detail = {"error": "VALIDATION_ERROR", **_describe_validation_errors(list(exc.errors()))}
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=jsonable_encoder({"detail": detail}),
    )


async def internal_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log unexpected errors server-side; the caller only sees a generic message."""
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    error = InternalError()
    return JSONResponse(status_code=error.status_code, content={"detail": error.to_detail()})


def create_app() -> FastAPI:
    """Build the FastAPI application."""
    application = FastAPI(
        title="School Directory API",
        description="School directory with email-verified accounts",
        version="0.1.0",
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        lifespan=lifespan,
    )

    application.add_exception_handler(ServiceError, service_error_handler)
    application.add_exception_handler(RequestValidationError, validation_error_handler)
    application.add_exception_handler(Exception, internal_error_handler)

    application.include_router(api_router, prefix="/api/v1")

    # Uploaded images (local storage backend only)
    if settings.storage_backend == "local":
        application.mount(
            settings.upload_url_prefix,
            StaticFiles(directory=settings.upload_dir, check_dir=False),
            name="school_images",
        )

    # CORS configuration
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @application.get("/", tags=["Root"])
    async def root() -> dict[str, str]:
        """Root endpoint - API welcome message."""
        return {
            "message": "Welcome to School Directory API",
            "status": "running",
            "environment": settings.python_env,
        }

    @application.get("/health", tags=["Health"])
    async def health_check() -> dict[str, str]:
        """Health check endpoint for container orchestration."""
        return {"status": "healthy"}

    @application.get("/ready", tags=["Health"])
    async def readiness_check(request: Request) -> JSONResponse:
        """Readiness check: database reachable. Redis is reported but optional."""
        database = getattr(request.app.state, "database", None)
        checks = {
            "database": "not initialized",
            "redis": "connected" if is_redis_available() else "unavailable",
        }
        ready = False

        if database is not None:
            try:
                await database.ping()
                checks["database"] = "connected"
                ready = True
            except Exception as e:
                logger.warning(f"Readiness database check failed: {e}")
                checks["database"] = "error"

        return JSONResponse(
            status_code=status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "ready" if ready else "not ready", **checks},
        )

    return application


app = create_app()
