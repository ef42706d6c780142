"""
StockPilot - Main FastAPI Application
"""
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import SQLAlchemyError
from datetime import datetime

from app.api.v1 import router as api_v1_router
from app.core.config import settings
from app.exceptions import StockPilotException
from app.jobs.runner import JobRunner, JobStatusStore
from app.jobs.scheduler import create_scheduler, schedule_daily
from app.jobs.tasks import daily_aggregation, expiry_check
from app.logging_config import setup_logging, get_logger

# Setup structured logging
setup_logging()
logger = get_logger(__name__)


def _timestamp() -> str:
    return datetime.utcnow().isoformat() + "Z"


def _with_diagnostics(content: dict, exc: Exception) -> dict:
    """Attach the underlying error text outside production."""
    if not settings.is_production:
        content["error_detail"] = str(exc)
    return content


# ===================
# Request Logging Middleware
# ===================

class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log method, path, status and duration of every request."""

    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        duration_ms = round((time.perf_counter() - started) * 1000, 2)
        logger.info(
            f"{request.method} {request.url.path} {response.status_code} {duration_ms}ms",
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            },
        )
        return response


def init_database():
    """Initialize database tables on startup (idempotent)."""
    try:
        from app.db.session import init_database as create_tables
        logger.info("Checking database tables...")
        create_tables()
        logger.info("Database tables ready")
    except SQLAlchemyError as e:
        logger.error(f"Database initialization failed: {e}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info(
        "Starting StockPilot API",
        extra={
            "version": settings.VERSION,
            "environment": settings.ENVIRONMENT,
            "debug": settings.DEBUG,
        }
    )
    init_database()

    scheduler = None
    if settings.SCHEDULER_ENABLED:
        scheduler = create_scheduler()
        schedule_daily(scheduler, app.state.expiry_runner, daily_aggregation)
        scheduler.start()
        logger.info("Job scheduler started")

    yield

    if scheduler is not None:
        scheduler.shutdown(wait=False)
        logger.info("Job scheduler stopped")
    logger.info("Shutting down StockPilot API")


# Create FastAPI app
app = FastAPI(
    title="StockPilot API",
    description="Multi-shop inventory: purchase orders, suppliers and product batches",
    version=settings.VERSION,
    lifespan=lifespan,
)

# Shared expiry runner: the scheduler and the /batches/_run-expiry endpoints
# go through the same object so the single-flight guard covers both.
app.state.expiry_status = JobStatusStore()
app.state.expiry_runner = JobRunner(
    expiry_check,
    app.state.expiry_status,
    retries=settings.EXPIRY_JOB_RETRIES,
    backoff_ms=settings.EXPIRY_JOB_BACKOFF_MS,
    name="expiry-check",
)

app.add_middleware(RequestLoggingMiddleware)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Accept", "Origin", "X-Requested-With", "X-User-Id"],
)


# ===================
# Exception Handlers
# ===================

@app.exception_handler(StockPilotException)
async def stockpilot_exception_handler(request: Request, exc: StockPilotException):
    logger.warning(
        f"StockPilot Exception: {exc.error_code} - {exc.message}",
        extra={"error_code": exc.error_code, "details": exc.details, "path": request.url.path}
    )
    # Add timestamp to error response for consistency
    error_dict = exc.to_dict()
    error_dict["timestamp"] = _timestamp()
    return JSONResponse(status_code=exc.status_code, content=error_dict)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = []
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error["loc"] if loc != "body")
        errors.append({"field": field, "message": error["msg"], "type": error["type"]})
    logger.warning("Validation error on %s", request.url.path, extra={"errors": errors})
    return JSONResponse(
        status_code=422,
        content={
            "error": "VALIDATION_ERROR",
            "message": "Request validation failed",
            "details": {"errors": errors},
            "timestamp": _timestamp(),
        },
    )


@app.exception_handler(SQLAlchemyError)
async def sqlalchemy_exception_handler(request: Request, exc: SQLAlchemyError):
    logger.error(f"Database error on {request.url.path}: {str(exc)}", exc_info=True)
    content = {
        "error": "DATABASE_ERROR",
        "message": "A database error occurred. Please try again.",
        "timestamp": _timestamp(),
    }
    return JSONResponse(status_code=500, content=_with_diagnostics(content, exc))


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unexpected error on {request.url.path}: {str(exc)}", exc_info=True)
    content = {
        "error": "INTERNAL_ERROR",
        "message": "An unexpected error occurred. Please try again later.",
        "timestamp": _timestamp(),
    }
    return JSONResponse(status_code=500, content=_with_diagnostics(content, exc))


# Include API routes
app.include_router(api_v1_router, prefix=settings.API_V1_STR)


@app.get("/")
async def root():
    return {"message": "StockPilot API", "version": settings.VERSION, "status": "online"}


@app.get("/health")
async def health_check():
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app.main:app", host="0.0.0.0", port=8000, reload=True)
