"""
FastAPI Application Factory

Creates the back-office API: middleware, exception mapping, routers and
the media mount for uploaded images.
"""

from pathlib import Path
from typing import Callable, Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from backoffice.config import Settings, get_settings
from backoffice.database.documents import DocumentNotFoundError, DocumentStoreError
from backoffice.reporting.ranges import InvalidRangeError
from backoffice.serving.api.middleware import (
    RateLimitMiddleware,
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
)
from backoffice.serving.api.routes import (
    auth_router,
    banners_router,
    dashboard_router,
    health_router,
    orders_router,
    products_router,
    reports_router,
)
from backoffice.services.banners import MissingImageError
from backoffice.storage.blobs import BlobStorageError

logger = structlog.get_logger(__name__)

API_PREFIX = "/api/v1"
WRITE_FAILED_MESSAGE = "Failed. Check document store and blob storage."


def register_exception_handlers(app: FastAPI) -> None:
    """Map domain errors onto HTTP responses."""

    @app.exception_handler(DocumentNotFoundError)
    async def not_found_handler(request: Request, exc: DocumentNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": "Not found", "collection": exc.collection, "id": exc.doc_id})

    @app.exception_handler(DocumentStoreError)
    @app.exception_handler(BlobStorageError)
    async def backend_failure_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error("Backend operation failed", path=request.url.path, error=str(exc), error_type=type(exc).__name__)
        return JSONResponse(status_code=503, content={"detail": WRITE_FAILED_MESSAGE})

    @app.exception_handler(InvalidRangeError)
    async def invalid_range_handler(request: Request, exc: InvalidRangeError) -> JSONResponse:
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    @app.exception_handler(MissingImageError)
    async def missing_image_handler(request: Request, exc: MissingImageError) -> JSONResponse:
        return JSONResponse(status_code=422, content={"detail": {"errors": {"image": str(exc)}}})


def create_api_app(settings: Optional[Settings] = None, lifespan: Optional[Callable] = None) -> FastAPI:
    """
    Create and configure FastAPI application.

    Returns:
        Configured FastAPI app instance
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Storefront Back-Office API",
        description="Catalog, order, banner and sales reporting API for the storefront admin",
        version=settings.version,
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.security.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(SecurityHeadersMiddleware, hsts=settings.is_production)
    app.add_middleware(
        RateLimitMiddleware,
        max_requests=settings.security.rate_limit_requests,
        window_seconds=settings.security.rate_limit_window_seconds,
    )
    app.add_middleware(RequestLoggingMiddleware)

    register_exception_handlers(app)

    app.include_router(health_router, prefix=API_PREFIX, tags=["Health"])
    app.include_router(auth_router, prefix=f"{API_PREFIX}/auth", tags=["Auth"])
    app.include_router(products_router, prefix=f"{API_PREFIX}/products", tags=["Products"])
    app.include_router(orders_router, prefix=f"{API_PREFIX}/orders", tags=["Orders"])
    app.include_router(banners_router, prefix=f"{API_PREFIX}/banners", tags=["Banners"])
    app.include_router(dashboard_router, prefix=f"{API_PREFIX}/dashboard", tags=["Dashboard"])
    app.include_router(reports_router, prefix=f"{API_PREFIX}/reports", tags=["Reports"])

    # The blob root is created on startup.
    app.mount(
        settings.blobs.public_base_url,
        StaticFiles(directory=Path(settings.blobs.root), check_dir=False),
        name="media",
    )

    @app.get(f"{API_PREFIX}/info")
    async def api_info():
        """API information endpoint."""
        return {
            "name": settings.app_name,
            "version": settings.version,
            "environment": settings.app_env,
            "documentation": None if settings.is_production else "/docs",
        }

    return app
