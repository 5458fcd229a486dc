"""Main FastAPI application."""

import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import sentry_sdk
import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration

from app.api.v1 import api_router
from app.config import DEFAULT_SECRET, settings
from app.core.cache import CacheManager, get_cache_manager, set_cache_manager
from app.core.errors import register_exception_handlers
from app.core.logging import setup_logging
from app.core.middleware import AccessLogMiddleware, SecurityHeadersMiddleware
from app.db.mongodb import mongodb
from app.services.auth_service import AuthService
from app.services.item_storage import MongoItemStorage
from app.services.user_storage import MongoUserStorage

# Setup logging
setup_logging()
logger = structlog.get_logger(__name__)

# Initialize Redis cache manager
cache_manager = CacheManager(settings)
set_cache_manager(cache_manager)

# Initialize Sentry for error tracking (only if DSN is properly configured)
if settings.SENTRY_DSN and settings.SENTRY_DSN.startswith("https://"):
    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.SENTRY_ENVIRONMENT,
        traces_sample_rate=settings.SENTRY_TRACES_SAMPLE_RATE,
        integrations=[
            FastApiIntegration(),
            LoggingIntegration(
                level=None,  # Capture all logs
                event_level="ERROR",  # Only send ERROR and above as events
            ),
        ],
        release=settings.APP_VERSION,
        attach_stacktrace=True,
        send_default_pii=False,  # Customer names and phone numbers stay out of Sentry
    )
else:
    logger.info("sentry_disabled", reason="SENTRY_DSN not configured")

if settings.is_production:
    if settings.AUTH_TOKEN_SECRET == DEFAULT_SECRET:
        logger.warning("insecure_config", detail="AUTH_TOKEN_SECRET is the default value")
    if "*" in settings.CORS_ORIGINS:
        logger.warning("insecure_config", detail="CORS_ORIGINS allows any origin")

STARTED_AT = time.monotonic()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    await mongodb.connect()
    item_storage = MongoItemStorage(mongodb.db)
    user_storage = MongoUserStorage(mongodb.db)
    await item_storage.create_indexes()
    await user_storage.create_indexes()
    await AuthService(user_storage).seed_users(settings)
    cache_manager.connect()
    logger.info("startup_complete", environment=settings.ENVIRONMENT, version=settings.APP_VERSION)
    yield
    # Shutdown
    cache_manager.disconnect()
    mongodb.close()


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Repair job tracking for a device repair shop",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

# Middleware added last runs outermost, so the access log wraps everything
app.add_middleware(GZipMiddleware, minimum_size=1024)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "X-CSRF-Token"],
)
app.add_middleware(AccessLogMiddleware)

register_exception_handlers(app)

# Include API router
app.include_router(api_router, prefix="/api")


@app.get("/api/health", tags=["Health"])
async def health_check():
    """Health check endpoint with cache status."""
    cache = get_cache_manager()
    return {
        "status": "healthy",
        "environment": settings.ENVIRONMENT,
        "uptime": round(time.monotonic() - STARTED_AT, 1),
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "cache": cache.get_stats() if cache else {"enabled": False},
    }
