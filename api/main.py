"""
Display Commerce API - Main Application.

FastAPI application serving display claims, UID redirects, inbound webhooks
(storefront orders, payment rail, database changes) and admin payouts.
"""

import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api import __version__
from domain.errors import ServiceError
from services.container import ServiceContainer, build_container
from services.settings import load_settings

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app(container: Optional[ServiceContainer] = None) -> FastAPI:
    """
    Build the application.

    Without a container, settings are loaded and clients are created at
    startup and closed at shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = None
        if getattr(app.state, "container", None) is None:
            owned = build_container(load_settings())
            app.state.container = owned
            logger.info("Service container ready")
        yield
        if owned is not None:
            owned.close()

    app = FastAPI(
        title="Display Commerce API",
        description="Attribution, claims and payouts for in-store commerce displays",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.container = container

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError):
        body = {"error": exc.message}
        if exc.details:
            body["details"] = exc.details
        return JSONResponse(status_code=exc.status_code, content=body)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        body = {"error": "Internal server error"}
        current = getattr(request.app.state, "container", None)
        if current is None or not current.settings.is_production:
            body["message"] = str(exc)
        return JSONResponse(status_code=500, content=body)

    @app.get("/health", tags=["Health"])
    def health_check():
        """
        Health check endpoint.

        Returns the API status and version.
        """
        return {
            "status": "healthy",
            "version": __version__,
            "service": "display-commerce-api"
        }

    @app.get("/", tags=["Root"])
    def root():
        return {
            "message": "Display Commerce API",
            "version": __version__,
            "docs": "/docs",
            "health": "/health"
        }

    from api.routers import claims, payouts, redirect, retailers, webhooks

    app.include_router(claims.router, prefix="/api/v1", tags=["Claims"])
    app.include_router(redirect.router, prefix="/api/v1", tags=["Redirect"])
    app.include_router(webhooks.router, prefix="/api/v1", tags=["Webhooks"])
    app.include_router(payouts.router, prefix="/api/v1", tags=["Payouts"])
    app.include_router(retailers.router, prefix="/api/v1", tags=["Retailers"])

    return app


configure_logging()
app = create_app()
