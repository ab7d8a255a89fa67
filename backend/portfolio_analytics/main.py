# backend/portfolio_analytics/main.py
"""
FastAPI application entry point.

This file:
- Configures application-wide logging
- Creates the FastAPI application
- Registers global exception handlers
- Registers the portfolio router
- Defines global endpoints (health checks)
"""

import logging

from fastapi import FastAPI, Depends, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from portfolio_analytics.config import settings
from portfolio_analytics.database import get_db, check_database_health
from portfolio_analytics.routers import portfolio_router
from portfolio_analytics.schemas.errors import ErrorDetail, ValidationErrorDetail
from portfolio_analytics.services.exceptions import (
    ServiceError,
    ValidationError,
    InvalidDateError,
    InvalidTickerError,
)
from portfolio_analytics.utils import setup_logging

logger = logging.getLogger(__name__)

# =============================================================================
# LOGGING SETUP (must be before app creation)
# =============================================================================

setup_logging()

# =============================================================================
# APPLICATION SETUP
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description="Portfolio lot valuation, return, risk and benchmark analytics API",
    version="0.1.0",
    debug=settings.debug,
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

from slowapi.errors import RateLimitExceeded
from portfolio_analytics.middleware import (
    CorrelationIdMiddleware,
    limiter,
    rate_limit_exceeded_handler,
    SlowAPIMiddleware,
    RATE_LIMIT_HEALTH,
)

# Attach limiter to app state (required by slowapi)
app.state.limiter = limiter

app.add_middleware(SlowAPIMiddleware)

# Extracts/generates correlation IDs and adds them to response headers
app.add_middleware(CorrelationIdMiddleware)


# =============================================================================
# GLOBAL EXCEPTION HANDLERS
# =============================================================================
# Service-layer exceptions carry no HTTP knowledge; they are mapped to
# status codes here, most specific first.
# =============================================================================

app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)


@app.exception_handler(InvalidDateError)
async def invalid_date_handler(request: Request, exc: InvalidDateError) -> JSONResponse:
    """Handle malformed date parameters (400)."""
    logger.warning(f"Invalid date for {exc.field}: {exc.value!r}")
    return JSONResponse(
        status_code=400,
        content=ErrorDetail(
            error="InvalidDateError",
            message=str(exc),
            details={"field": exc.field, "value": str(exc.value)},
        ).model_dump(),
    )


@app.exception_handler(InvalidTickerError)
async def invalid_ticker_handler(request: Request, exc: InvalidTickerError) -> JSONResponse:
    """Handle malformed ticker symbols (400)."""
    logger.warning(f"Invalid ticker: {exc.ticker!r}")
    return JSONResponse(
        status_code=400,
        content=ErrorDetail(
            error="InvalidTickerError",
            message=str(exc),
            details={"field": exc.field, "ticker": str(exc.ticker)},
        ).model_dump(),
    )


@app.exception_handler(ValidationError)
async def validation_error_handler(
    request: Request, exc: ValidationError
) -> JSONResponse:
    """Handle validation errors (400)."""
    logger.warning(f"Validation error: {exc}")
    return JSONResponse(
        status_code=400,
        content=ErrorDetail(
            error="ValidationError",
            message=str(exc),
            details={"field": exc.field} if exc.field else None,
        ).model_dump(),
    )


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    """Handle generic service errors (500)."""
    logger.error(f"Service error: {exc}")
    return JSONResponse(
        status_code=500,
        content=ErrorDetail(
            error="ServiceError",
            message=str(exc),
            details=None,
        ).model_dump(),
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """
    Handle all HTTPExceptions with consistent error format.

    Converts FastAPI's default {"detail": "..."} format to the ErrorDetail
    format.
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
        headers=exc.headers,
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Convert the default 422 body to the ValidationErrorDetail format."""
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


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last resort (500). The traceback is logged, never returned."""
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content=ErrorDetail(
            error="InternalServerError",
            message="An unexpected error occurred",
            details=None,
        ).model_dump(),
    )


# =============================================================================
# ROUTER REGISTRATION
# =============================================================================

app.include_router(portfolio_router)  # /users/{user_id}/portfolio/*


# =============================================================================
# GLOBAL ENDPOINTS
# =============================================================================

@app.get("/", tags=["Health"])
@limiter.limit(RATE_LIMIT_HEALTH)
def root(request: Request):
    """API root - returns basic application info."""
    return {
        "message": f"Welcome to {settings.app_name}!",
        "docs": "/docs",
        "redoc": "/redoc",
    }


@app.get("/health", tags=["Health"])
@limiter.limit(RATE_LIMIT_HEALTH)
def health_check(request: Request):
    """
    Detailed health check.

    Reports database connectivity and, for pooled engines, pool usage.
    Returns HTTP 503 when the database is unreachable.
    """
    database = check_database_health()
    response_data = {
        "status": database["status"],
        "environment": settings.environment,
        "checks": {"database": database},
    }

    if database["status"] != "healthy":
        return JSONResponse(status_code=503, content=response_data)
    return response_data


@app.get("/health/live", tags=["Health"])
@limiter.limit(RATE_LIMIT_HEALTH)
def liveness_check(request: Request):
    """
    Liveness probe.

    Always 200 while the process is alive. Does NOT check dependencies,
    use /health/ready for that.
    """
    return {"status": "alive"}


@app.get("/health/ready", tags=["Health"])
@limiter.limit(RATE_LIMIT_HEALTH)
def readiness_check(request: Request, db: Session = Depends(get_db)):
    """
    Readiness probe.

    Returns HTTP 200 if the application is ready to serve traffic and 503
    if the database is unavailable.
    """
    try:
        db.execute(text("SELECT 1"))
        return {"status": "ready"}
    except Exception as e:
        logger.error(f"Readiness check failed: {e}")
        return JSONResponse(
            status_code=503,
            content={
                "status": "not_ready",
                "error": "Database unavailable",
            },
        )
