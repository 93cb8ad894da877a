"""
FastAPI Production Application

Main entry point for the Storefront Back-Office API.
"""

from contextlib import AsyncExitStack, asynccontextmanager
from pathlib import Path
from typing import Optional

import structlog
from fastapi import FastAPI

from backoffice.config import Settings, get_settings
from backoffice.config.logging import configure_logging
from backoffice.database.connection import close_database, get_session_factory, init_database
from backoffice.realtime.changefeed import create_change_feed
from backoffice.serving.api.dependencies import build_services
from backoffice.serving.api.main import create_api_app
from backoffice.serving.cache import close_redis, init_redis

logger = structlog.get_logger(__name__)


def create_lifespan(settings: Settings):
    """Lifespan bound to ``settings``: connect backends, start live projections."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(settings=settings)
        logger.info("Starting Storefront Back-Office API", environment=settings.app_env)

        async with AsyncExitStack() as stack:
            Path(settings.blobs.root).mkdir(parents=True, exist_ok=True)

            await init_database(settings)
            stack.push_async_callback(close_database)
            logger.info("Database initialized")

            redis_client = None
            if settings.uses_redis:
                redis_client = await init_redis(settings)
                stack.push_async_callback(close_redis)
                logger.info("Redis initialized")

            feed = create_change_feed(
                settings.realtime.backend,
                client=redis_client,
                channel_prefix=settings.realtime.channel_prefix,
            )
            stack.push_async_callback(feed.close)

            services = build_services(settings, get_session_factory(), feed)
            for projection in services.projections.values():
                await stack.enter_async_context(projection)

            app.state.services = services
            logger.info(
                "Live projections started",
                **{name: len(projection.snapshot) for name, projection in services.projections.items()},
            )

            try:
                yield
            finally:
                logger.info("Shutting down...")
                app.state.services = None

    return lifespan


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the application for ``settings`` (cached settings when omitted)."""
    settings = settings or get_settings()
    return create_api_app(settings, lifespan=create_lifespan(settings))


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
