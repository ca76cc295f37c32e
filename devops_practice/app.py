"""FastAPI ASGI application factory and runtime wiring.

This module provides the entrypoint ``uvicorn devops_practice.app:create_app
--factory`` and owns application-level orchestration:

- settings, session store and templates on ``app.state``,
- middleware and error-handler installation,
- router registration.

The HTTP behavior itself lives in ``devops_practice.http`` (middleware, error
shaping, settings parsing, templates) and in the ``views``/``api`` routers.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Protocol, cast

from fastapi import FastAPI

from devops_practice.api import router as api_router
from devops_practice.http.errors import install_error_handlers
from devops_practice.http.jinja import default_templates
from devops_practice.http.middleware import (
    FaultBoundaryMiddleware,
    RequestLoggerMiddleware,
)
from devops_practice.http.settings import AppSettings
from devops_practice.sessions import InMemorySessionStore
from devops_practice.views import router as views_router

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from starlette.types import ASGIApp


logger = logging.getLogger(__name__)


class MiddlewareFactory(Protocol):
    def __call__(self, app: ASGIApp, /, *args: object, **kwargs: object) -> ASGIApp: ...


def create_app(settings: AppSettings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Settings are read from the environment when not given; invalid values
    raise `ConfigurationError` before anything is served.
    """
    if settings is None:
        settings = AppSettings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info(
            "%s %s started (environment: %s)",
            settings.app_name,
            settings.app_version,
            settings.environment,
        )
        try:
            yield
        finally:
            app.state.sessions.clear()
            logger.info("HTTP server closed")

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        lifespan=lifespan,
        openapi_url=None,
    )

    app.state.settings = settings
    app.state.sessions = InMemorySessionStore()
    app.state.templates = default_templates(settings)

    install_error_handlers(app)

    # Added last runs first: the logger sees the response the boundary produced.
    app.add_middleware(cast("MiddlewareFactory", FaultBoundaryMiddleware))
    app.add_middleware(cast("MiddlewareFactory", RequestLoggerMiddleware))

    app.include_router(views_router)
    app.include_router(api_router)

    return app


__all__ = [
    "create_app",
]
