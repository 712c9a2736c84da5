# fund_positions/main.py
"""
FastAPI application entry point.

This file:
- Configures application-wide logging
- Creates the FastAPI application (startup waits for the database)
- Registers global exception handlers
- Registers the positions router
- Defines global endpoints (greeting, health checks)
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Depends, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from fund_positions.config import settings
from fund_positions.database import engine, get_db, wait_for_database
from fund_positions.middleware import (
    CorrelationIdMiddleware,
    limiter,
    rate_limit_exceeded_handler,
    SlowAPIMiddleware,
    RATE_LIMIT_HEALTH,
)
from fund_positions.models import Base
from fund_positions.routers import positions_router
from fund_positions.schemas.errors import ErrorDetail, ValidationErrorDetail
from fund_positions.services.exceptions import (
    ServiceError,
    InvalidDateError,
    StoreUnavailableError,
)
from fund_positions.utils import setup_logging

logger = logging.getLogger(__name__)

# =============================================================================
# LOGGING SETUP (must be before app creation)
# =============================================================================

setup_logging()


# =============================================================================
# APPLICATION SETUP
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Wait for the ledger database and create missing tables before serving."""
    logger.info(f"Starting {settings.app_name} ({settings.environment})")
    if settings.db_init_on_startup:
        wait_for_database()
        Base.metadata.create_all(bind=engine)
        logger.info("Ledger tables ready")
    yield
    logger.info(f"Shutting down {settings.app_name}")


app = FastAPI(
    title=settings.app_name,
    description="Valuation of fund positions from a trade and reference price ledger",
    version="0.1.0",
    lifespan=lifespan,
)


# =============================================================================
# CORS MIDDLEWARE
# =============================================================================
# Origins are configured via CORS_ORIGINS environment variable

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)


# =============================================================================
# MIDDLEWARE (order matters: last added = first executed)
# =============================================================================

# Attach limiter to app state (required by slowapi)
app.state.limiter = limiter

app.add_middleware(SlowAPIMiddleware)

# Extracts/generates correlation IDs and adds them to response headers
app.add_middleware(CorrelationIdMiddleware)


# =============================================================================
# GLOBAL EXCEPTION HANDLERS
# =============================================================================
# Service-layer exceptions are converted to the standard ErrorDetail body.
# Handlers are matched on the most specific class first.
# =============================================================================

app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)


@app.exception_handler(InvalidDateError)
async def invalid_date_handler(request: Request, exc: InvalidDateError) -> JSONResponse:
    """Handle malformed date parameters (400)."""
    logger.warning(f"Invalid date: {exc.value!r}")
    return JSONResponse(
        status_code=400,
        content=ErrorDetail(
            error="InvalidDateError",
            message=str(exc),
            details={"field": exc.field, "value": exc.value},
        ).model_dump(),
    )


@app.exception_handler(StoreUnavailableError)
async def store_unavailable_handler(request: Request, exc: StoreUnavailableError) -> JSONResponse:
    """
    Handle ledger store failures (500).

    The underlying database message is logged, not returned.
    """
    logger.error(f"Store unavailable: {exc}")
    return JSONResponse(
        status_code=500,
        content=ErrorDetail(
            error="StoreUnavailableError",
            message="The ledger store could not be queried",
            details={"operation": exc.operation},
        ).model_dump(),
    )


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    """Handle any other service error (500), reported under its own class name."""
    logger.error(f"{type(exc).__name__}: {exc}")
    return JSONResponse(
        status_code=500,
        content=ErrorDetail(
            error=type(exc).__name__,
            message=str(exc),
            details=None,
        ).model_dump(),
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """
    Handle all HTTPExceptions with consistent error format.

    Covers routing errors (unknown path, wrong method) as well as
    HTTPExceptions raised by handlers.
    """
    error_types = {
        400: "BadRequestError",
        404: "NotFoundError",
        405: "MethodNotAllowedError",
        422: "ValidationError",
        429: "RateLimitError",
        500: "InternalServerError",
        503: "ServiceUnavailableError",
    }
    error_type = error_types.get(exc.status_code, "HTTPError")
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorDetail(
            error=error_type,
            message=str(exc.detail) if exc.detail else "An error occurred",
            details=None,
        ).model_dump(),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
        request: Request, exc: RequestValidationError
) -> JSONResponse:
    """
    Handle Pydantic validation errors with consistent format.

    Converts the default 422 validation error to our ValidationErrorDetail format.
    """
    errors = []
    for error in exc.errors():
        errors.append({
            "field": ".".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        })

    return JSONResponse(
        status_code=422,
        content=ValidationErrorDetail(
            error="ValidationError",
            message="Request validation failed",
            details=errors,
        ).model_dump(),
    )


# =============================================================================
# GLOBAL ENDPOINTS
# =============================================================================
@app.get("/", tags=["Health"])
@limiter.limit(RATE_LIMIT_HEALTH)
def root(request: Request):
    """
    API root - returns basic application info.
    """
    return {
        "message": f"Welcome to {settings.app_name}!",
        "docs": "/docs",
        "redoc": "/redoc",
    }


@app.get("/hello", tags=["Health"])
@limiter.limit(RATE_LIMIT_HEALTH)
def hello(request: Request):
    """Greeting, handy as a smoke test."""
    return {"message": f"Hello from {settings.app_name}!"}


@app.get("/health", tags=["Health"])
@limiter.limit(RATE_LIMIT_HEALTH)
def health_check(request: Request, db: Session = Depends(get_db)):
    """
    Health check endpoint.

    **Response Status Codes:**
    - 200: Database reachable
    - 503: Database unreachable - do not route traffic here
    """
    checks = {}
    healthy = True

    try:
        db.execute(text("SELECT 1"))
        checks["database"] = {
            "status": "healthy",
            "critical": True,
        }
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        checks["database"] = {
            "status": "unhealthy",
            "critical": True,
            "error": str(e),
        }
        healthy = False

    response_data = {
        "status": "healthy" if healthy else "unhealthy",
        "checks": checks,
    }

    if not healthy:
        return JSONResponse(status_code=503, content=response_data)

    return response_data


@app.get("/health/live", tags=["Health"])
@limiter.limit(RATE_LIMIT_HEALTH)
def liveness_check(request: Request):
    """
    Liveness probe endpoint.

    Returns HTTP 200 if the application is running. Does NOT check
    dependencies - use /health/ready for that.
    """
    return {"status": "alive"}


@app.get("/health/ready", tags=["Health"])
@limiter.limit(RATE_LIMIT_HEALTH)
def readiness_check(request: Request, db: Session = Depends(get_db)):
    """
    Readiness probe endpoint.

    Returns HTTP 200 if the ledger database is reachable, 503 otherwise.
    """
    try:
        db.execute(text("SELECT 1"))
    except Exception as e:
        logger.warning(f"Readiness check failed: {e}")
        return JSONResponse(
            status_code=503,
            content={"status": "not_ready", "reason": "database unavailable"},
        )

    return {"status": "ready"}


# =============================================================================
# ROUTER REGISTRATION
# =============================================================================

app.include_router(positions_router)  # /{user_id}/trades, /{user_id}/assets*
