from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from src.tablehost.api.middlewares import setup_middlewares
from src.tablehost.api.v1.router import api_router
from src.tablehost.core.config import get_settings
from src.tablehost.core.db import dispose_engine
from src.tablehost.core.exceptions import setup_exception_handlers
from src.tablehost.core.health import setup_health_endpoint, setup_metrics
from src.tablehost.core.logging import get_logger, setup_logging
from src.tablehost.core.rate_limit import limiter
from src.tablehost.core.redis import close_redis
from src.tablehost.core.shutdown import request_tracker
from src.tablehost.temporal.client import close_temporal_client

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Application lifespan - startup and shutdown."""
    settings = get_settings()
    setup_logging(settings.debug)
    logger.info("Starting application", app_name=settings.app_name, env=settings.app_env)

    yield

    grace_period = settings.shutdown_grace_period
    logger.info(
        "Shutdown initiated, draining in-flight requests",
        in_flight=request_tracker.in_flight_count,
    )
    await request_tracker.start_shutdown()

    drained = await request_tracker.wait_for_drain(timeout=grace_period)
    if not drained:
        logger.warning(
            "Shutdown timeout, some requests may not have completed",
            grace_period=grace_period,
            in_flight=request_tracker.in_flight_count,
        )

    logger.info("Closing connections...")
    await close_redis()
    await close_temporal_client()
    await dispose_engine()
    logger.info("Shutdown complete")


OPENAPI_TAGS = [
    {"name": "provisioning", "description": "Tenant provisioning (platform admins)"},
    {"name": "tenants", "description": "Tenant lookup"},
    {"name": "credentials", "description": "Owner setup links and email changes"},
    {"name": "widgets", "description": "Widget configuration and analytics"},
    {"name": "widgets-public", "description": "Endpoints called by embedded widgets"},
    {"name": "audit", "description": "Administrative audit log"},
]


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Restaurant tenant provisioning and widget API",
        version="0.1.0",
        openapi_tags=OPENAPI_TAGS,
        lifespan=lifespan,
        docs_url="/docs" if settings.enable_openapi else None,
        redoc_url="/redoc" if settings.enable_openapi else None,
        openapi_url="/openapi.json" if settings.enable_openapi else None,
    )

    setup_exception_handlers(app)

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)  # type: ignore[arg-type]

    setup_middlewares(app, settings)

    app.include_router(api_router)

    setup_metrics(app)
    setup_health_endpoint(app)

    return app


app = create_app()
