"""
Orion Tours Search -- FastAPI Application
Faceted tour search plus the reference lists behind the filter controls.
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging
import logging.config
from datetime import datetime, timezone
import time
import asyncio

from slowapi.errors import RateLimitExceeded

from app.core.config import settings
from app.core.errors import CatalogError, catalog_error_handler
from app.core.rate_limiting import limiter, rate_limit_handler
from app.db.database import init_db
from app.api import health, routes_meta, routes_tours

# Configure logging
logging_config = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "default": {
            "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        },
        "detailed": {
            "format": "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"
        },
        "json": {
            "()": "app.core.monitoring.JSONFormatter",
        },
    },
    "handlers": {
        "default": {
            "formatter": "json" if settings.log_format == "json" else "detailed",
            "class": "logging.StreamHandler",
            "stream": "ext://sys.stdout",
        },
    },
    "loggers": {
        "app": {"handlers": ["default"], "level": settings.log_level},
        "uvicorn": {"handlers": ["default"], "level": "INFO"},
        "sqlalchemy": {"handlers": ["default"], "level": "WARNING"},
    },
}

logging.config.dictConfig(logging_config)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup/shutdown."""
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Environment: {settings.environment} | Workers: {settings.api_workers}")

    if settings.database_create_tables:
        # Retry DB init up to 3 times, the database may still be starting
        for attempt in range(1, 4):
            try:
                init_db()
                break
            except Exception as e:
                if attempt == 3:
                    logger.error(f"Database init failed after 3 attempts, aborting startup: {e}")
                    raise
                logger.warning(f"Database init attempt {attempt}/3 failed: {e}, retrying in 2s...")
                await asyncio.sleep(2)

    logger.info("Application startup complete -- ready to serve")

    yield

    logger.info("Application shutting down")


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Faceted search over tour packages with currency-converted prices.",
    docs_url="/docs" if settings.debug else None,
    redoc_url=None,
    openapi_url="/openapi.json" if settings.debug else None,
    lifespan=lifespan,
)

# Rate limiter
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
app.add_exception_handler(CatalogError, catalog_error_handler)

# GZip compression (min 500 bytes)
app.add_middleware(GZipMiddleware, minimum_size=500)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)


# Request logging + security headers middleware
@app.middleware("http")
async def request_middleware(request: Request, call_next):
    """Log requests with timing and add security headers in one pass."""
    start = time.perf_counter()
    request_id = request.headers.get("X-Request-ID", "")

    response = await call_next(request)

    elapsed = time.perf_counter() - start
    response.headers["X-Process-Time"] = f"{elapsed:.3f}"

    # Security headers
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

    if request_id:
        response.headers["X-Request-ID"] = request_id

    logger.info(f"{request.method} {request.url.path} -> {response.status_code} in {elapsed:.3f}s")

    return response


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle uncaught exceptions without leaking internals."""
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_error",
            "detail": str(exc) if settings.debug else "An unexpected error occurred",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )


# Include routers
app.include_router(health.router, prefix=settings.api_prefix)
app.include_router(routes_tours.router, prefix=settings.api_prefix)
app.include_router(routes_meta.router, prefix=settings.api_prefix)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.api_host,
        port=settings.api_port,
        workers=settings.api_workers,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
