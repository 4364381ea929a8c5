"""
FastAPI application factory.

Creates and configures the FastAPI application instance.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from shared.config import get_settings
from shared.exceptions import BackstageError
from modules.streams.routes import router as streams_router, posts_router

from .dependencies import ServiceContainer
from .routes import health, realtime

logger = logging.getLogger(__name__)


def status_for(error: BackstageError) -> int:
    """HTTP status code for a domain error."""
    return error.status_code


async def backstage_error_handler(request: Request, exc: BackstageError) -> JSONResponse:
    status_code = status_for(exc)
    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    return JSONResponse(status_code=status_code, content=exc.to_dict(), headers=headers)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Runs startup and shutdown logic.
    """
    container: ServiceContainer = app.state.container
    # Startup
    await container.start()
    settings = container.settings
    logger.info("Starting %s on %s:%s", settings.app_name, settings.host, settings.port)
    yield
    # Shutdown
    logger.info("Shutting down %s", settings.app_name)
    await container.stop()


def create_app(container: Optional[ServiceContainer] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        container: Pre-built service container (tests inject one with a
            seeded directory); a fresh one is built from settings otherwise

    Returns:
        Configured FastAPI instance
    """
    container = container or ServiceContainer(get_settings())
    settings = container.settings

    app = FastAPI(
        title=settings.app_name,
        description="Real-time core of the Backstage Live creator platform",
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/api/docs" if settings.debug else None,
        redoc_url="/api/redoc" if settings.debug else None,
    )
    app.state.container = container

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    app.add_exception_handler(BackstageError, backstage_error_handler)

    # Register routes
    app.include_router(health.router, prefix="/api", tags=["health"])
    app.include_router(realtime.router, tags=["realtime"])
    app.include_router(streams_router, prefix="/api/streams", tags=["streams"])
    app.include_router(posts_router, prefix="/api/posts", tags=["posts"])

    return app


# Application instance for uvicorn
app = create_app()
