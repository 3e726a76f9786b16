"""
StayQuest API - Main Application Entry Point

Hotel discovery and booking backend:
- Nearby lodging search through the places provider, cached in Redis
- Hosted checkout sessions with the payment provider
- Exactly-once booking reconciliation from the confirmation view, the
  verify endpoint and the payment webhook
- User-scoped favorites and bookings behind identity-provider tokens
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from stayquest.core.config import get_settings
from stayquest.core.logging import setup_logging, get_logger
from stayquest.core.metrics import metrics_endpoint
from stayquest.api.errors import register_exception_handlers
from stayquest.api.router import api_router
from stayquest.api.middleware import RequestLoggingMiddleware
from stayquest.infrastructure.identity_client import close_identity_client
from stayquest.infrastructure.places_client import close_places_client
from stayquest.services.cache_service import get_redis, close_redis, get_cache_stats
from stayquest.services.session_events import SessionEvents, log_session_change

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle: startup and shutdown hooks."""
    setup_logging()
    logger = get_logger(__name__)

    logger.info(
        "application_starting",
        app=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
    )

    # The app owns the session event stream for its whole lifetime
    session_events = SessionEvents()
    audit_subscription = session_events.subscribe(log_session_change)
    app.state.session_events = session_events

    redis_client = await get_redis()
    if redis_client:
        logger.info("redis_ready")
    else:
        logger.warning("redis_unavailable", message="Running without cache")

    yield

    audit_subscription.unsubscribe()
    session_events.close()
    await close_places_client()
    await close_identity_client()
    await close_redis()
    logger.info("application_shutdown")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Hotel discovery and booking API with exactly-once payment reconciliation",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(RequestLoggingMiddleware)

register_exception_handlers(app)

app.include_router(api_router)


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint for Docker and load balancers."""
    cache_stats = await get_cache_stats()
    return {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "cache": cache_stats,
    }


@app.get("/metrics", tags=["Health"], include_in_schema=False)
def metrics():
    return metrics_endpoint()


@app.get("/", tags=["Root"])
async def root():
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "docs": "/docs",
    }
