"""FastAPI application for Collector Hub."""

import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from sqlalchemy.exc import SQLAlchemyError

from collector.config import settings
from collector.db.connection import close_db, init_db, ping
from collector.entries_api import router as entries_router
from collector.exceptions import CollectorError
from collector.list_api import router as list_router
from collector.models import HealthStatus
from collector.report_api import router as report_router
from collector.research_api import router as research_router
from collector.run_api import router as run_router
from collector.services import webhook
from collector.types_api import router as types_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Collector Hub",
    description="Entry, run and report tracker with a research note feed",
    version="1.0.0"
)

# Register API routers
app.include_router(run_router)
app.include_router(report_router)
app.include_router(list_router)
app.include_router(entries_router)
app.include_router(types_router)
app.include_router(research_router)

# Prometheus metrics
Instrumentator().instrument(app).expose(app, endpoint="/metrics")


# =============================================================================
# Error handlers
# =============================================================================


@app.exception_handler(CollectorError)
async def collector_error_handler(request: Request, exc: CollectorError):
    logger.warning(
        f"{request.method} {request.url.path} failed: "
        f"{type(exc).__name__} status={exc.status_code} message={exc.message}"
    )
    content = {"error": exc.message}
    if exc.details is not None:
        content["details"] = exc.details
    return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"{request.method} {request.url.path} invalid input: {exc.errors()}")
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid input", "details": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error(f"{request.method} {request.url.path} database error: {exc}")
    return JSONResponse(status_code=500, content={"error": str(exc)})


# =============================================================================
# Lifecycle
# =============================================================================


@app.on_event("startup")
async def startup_event():
    """Check the database and log the webhook configuration."""
    try:
        await init_db()
        logger.info("Database connection initialized")
    except Exception as e:
        logger.warning(f"Database initialization failed: {e}")

    logger.info("Collector Hub started")
    logger.info(f"Webhook configured: {settings.webhook_configured}")
    logger.info(f"Query cache TTL: {settings.QUERY_CACHE_TTL}s")


@app.on_event("shutdown")
async def shutdown_event():
    """Close the webhook HTTP client and the database engine."""
    await webhook.close_client()
    logger.info("Webhook client closed")

    await close_db()
    logger.info("Database connection closed")


@app.get("/health", response_model=HealthStatus)
async def health_check():
    """Check health of the service and its database."""
    database_available = await ping()
    status = "healthy" if database_available else "degraded"

    return HealthStatus(
        status=status,
        database_available=database_available,
        webhook_configured=settings.webhook_configured,
    )
