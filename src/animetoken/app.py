"""FastAPI application factory."""

from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI, Response, status
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from animetoken.api.errors import register_exception_handlers
from animetoken.api.routes import (
    collections,
    mint_jobs,
    newsletter,
    profiles,
    realtime,
    social,
    stats,
    wallets,
)
from animetoken.core import timezone  # noqa: F401
from animetoken.core.config import Settings, configure_logging
from animetoken.core.database import setup_db_session
from animetoken.services.email.resend_client import ResendClient
from animetoken.services.realtime import ChangeBroker
from animetoken.uow import create_uow_factory

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan context manager.

    Startup: configure logging, build the session factory, realtime broker,
    UoW factory and (when configured) the Resend client, all kept on app.state.
    Shutdown: dispose of the database engine.
    """
    settings: Settings = app.state.settings
    configure_logging(settings)

    session_factory = setup_db_session(settings.database_url, settings.db_pool_size)
    broker = ChangeBroker()

    app.state.session_factory = session_factory
    app.state.broker = broker
    app.state.uow_factory = create_uow_factory(session_factory, broker)

    if settings.resend_api_key:
        app.state.email_client = ResendClient(settings.resend_api_key, settings.newsletter_from)
    else:
        app.state.email_client = None
        logger.warning("startup.email_disabled", reason="RESEND_API_KEY not set")

    logger.info("application.startup", db_url=settings.database_url.split("@")[-1])

    yield

    logger.info("application.shutdown")
    await session_factory.kw["bind"].dispose()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Create and configure FastAPI application.

    Args:
        settings: Explicit settings (tests); loaded from the environment otherwise

    Returns:
        Configured FastAPI application instance
    """
    settings = settings or Settings()  # type: ignore[call-arg]

    app = FastAPI(
        title="ANIME.TOKEN Backend API",
        description="NFT marketplace functions and realtime change feed",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Every function router carries prefix="/functions/v1"
    for module in (mint_jobs, profiles, social, wallets, collections, newsletter, stats):
        app.include_router(module.router)
    app.include_router(realtime.router)

    @app.get("/health")
    async def health_check(response: Response):
        """Health check endpoint with database connectivity test.

        Returns:
            200: {"status": "healthy"} if database connection succeeds
            503: {"status": "unhealthy", "error": {...}} if database connection fails
        """
        try:
            async with app.state.session_factory() as session:
                result = await session.execute(text("SELECT 1"))
                result.scalar()

            logger.debug("health_check.success")
            return {"status": "healthy"}

        except Exception as e:
            logger.error(
                "health_check.failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
            return {
                "status": "unhealthy",
                "error": {
                    "type": type(e).__name__,
                    "message": str(e),
                },
            }

    return app


# Create app instance for uvicorn
app = create_app()
