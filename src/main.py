"""Main FastAPI application entry point."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import ORJSONResponse
from slowapi.middleware import SlowAPIMiddleware

from api.exception_handlers import setup_exception_handlers
from api.middleware.logging import RequestLoggingMiddleware
from api.middleware.request_id import RequestIDMiddleware
from api.middleware.security import SecurityHeadersMiddleware
from api.routes.health import router as health_router
from api.v1 import router as v1_router
from api.v1.dependencies import get_event_notifier
from core.config import settings
from core.logging import setup_logging
from core.rate_limit import limiter
from infrastructure.database.session import engine

logger = structlog.get_logger()

# Initialize structured logging
setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan manager for startup/shutdown tasks."""
    logger.info(
        "application_started",
        app_name=settings.app_name,
        environment=settings.app_env,
        default_timezone=settings.default_timezone,
    )
    yield
    # Event streams only end once their subscriber queue is closed.
    closed = get_event_notifier().close_all()
    logger.info("application_stopping", closed_event_streams=closed)
    await engine.dispose()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        lifespan=lifespan,
        default_response_class=ORJSONResponse,
        title=settings.app_name,
        description=(
            "## Time Tracking API\n\n"
            "Timelog records named work intervals (time log entries) and "
            "aggregates them by day and week.\n\n"
            "### Features\n"
            "- **Start/Stop**: at most one running entry per user; starting a new "
            "entry stops the running one\n"
            "- **Day Groups**: entries grouped by local day, split at midnight, "
            "with daily and weekly totals\n"
            "- **Live Updates**: start/stop events pushed over Server-Sent Events\n"
            "- **Tags**: usage statistics and per-user legacy markers\n\n"
            "### Authentication\n"
            "All endpoints (except `/health`) require a valid JWT token "
            "in the Authorization header:\n"
            "```\nAuthorization: Bearer <your_token>\n```\n"
            "The event stream also accepts a short-lived `?token=` from "
            "`POST /api/v1/time-log-entries/events/token`.\n\n"
            "### Rate Limits\n"
            "- GET endpoints: 60 requests/minute\n"
            "- POST/PUT/PATCH/DELETE: 30 requests/minute"
        ),
        version=settings.app_version,
        debug=settings.debug,
        openapi_tags=[
            {
                "name": "health",
                "description": "Health check endpoints",
            },
            {
                "name": "time-log-entries",
                "description": "Entry lifecycle, listing and day/week aggregation",
            },
            {
                "name": "events",
                "description": "Real-time entry start/stop events",
            },
            {
                "name": "tags",
                "description": "Tag statistics and legacy markers",
            },
        ],
    )

    # Rate limiting
    app.state.limiter = limiter
    app.add_middleware(SlowAPIMiddleware)

    # Security & tracking middleware (LIFO order - last added = outermost)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # GZip compression for responses > 1KB
    app.add_middleware(GZipMiddleware, minimum_size=1000)

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Setup exception handlers
    setup_exception_handlers(app)

    # Include routers
    app.include_router(health_router)
    app.include_router(v1_router, prefix="/api/v1")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=not settings.is_production,
    )
