"""FastAPI application factory.

Run with: uvicorn rankify.main:app
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from rankify import __version__
from rankify.api.exception_handlers import register_exception_handlers
from rankify.api.routers import api_router
from rankify.config import Settings, get_settings
from rankify.infrastructure.integrations import SpotifyCatalogClient
from rankify.infrastructure.lifecycle import lifespan
from rankify.infrastructure.observability import RequestLoggingMiddleware


def create_app(
    settings: Settings | None = None,
    catalog_client: SpotifyCatalogClient | None = None,
) -> FastAPI:
    """Build the application. Resources are created in the lifespan, not here."""
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=__version__,
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.catalog_client = catalog_client

    if settings.api.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.api.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )
    app.add_middleware(RequestLoggingMiddleware)

    register_exception_handlers(app)
    app.include_router(api_router)
    return app


app = create_app()
