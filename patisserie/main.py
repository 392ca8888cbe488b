"""
Patisserie Orders - FastAPI Backend Application
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
import structlog

from patisserie.config import settings
from patisserie.errors import OrderServiceError
from patisserie.api import auth, drivers, orders

logging.basicConfig(format="%(message)s", level=settings.log_level.upper())

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
        if settings.log_format == "json"
        else structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    logger.info("Starting Patisserie Orders API", version="1.0.0")
    yield
    logger.info("Shutting down Patisserie Orders API")


# Create FastAPI application
app = FastAPI(
    title="Patisserie Orders",
    description="Order lifecycle, payments and dispatch for a patisserie delivery service",
    version="1.0.0",
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(OrderServiceError)
async def order_error_handler(request: Request, exc: OrderServiceError):
    """Business-rule violations: stable error kind plus message key for the client to localise"""
    logger.info(
        "Order request rejected",
        path=request.url.path,
        error=exc.kind,
        detail=exc.detail,
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    """Persistence failures are reported separately from business errors and never retried here"""
    logger.error("Database error", path=request.url.path, error=str(exc))
    return JSONResponse(
        status_code=503,
        content={
            "error": "infrastructure_error",
            "message_key": "serviceUnavailable",
            "detail": "Database unavailable",
            "params": {},
        },
    )


# Health check endpoints
@app.get("/health")
async def health():
    """Basic health check"""
    return {"status": "healthy", "service": "api", "version": "1.0.0"}


@app.get("/health/ready")
async def ready():
    """Readiness check with dependency verification"""
    from patisserie.database import SessionLocal

    checks = {}

    # Check database
    try:
        async with SessionLocal() as db:
            await db.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception as e:
        checks["database"] = f"failed: {str(e)}"

    # Check Redis
    try:
        from patisserie.jobs.celery_app import celery_app
        celery_app.control.ping(timeout=1)
        checks["redis"] = "ok"
    except Exception as e:
        checks["redis"] = f"failed: {str(e)}"

    all_ok = all(v == "ok" for v in checks.values())

    return {
        "status": "ready" if all_ok else "not_ready",
        "checks": checks,
    }


# Include API routers
app.include_router(auth.router, prefix="/auth", tags=["Authentication"])
app.include_router(orders.router, prefix="/orders", tags=["Orders"])
app.include_router(drivers.router, prefix="/drivers", tags=["Drivers"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "patisserie.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_debug,
    )
