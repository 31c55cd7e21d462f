"""FastAPI application wiring for the DMAT account service."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.middleware.httpsredirect import HTTPSRedirectMiddleware

from .api.error_handlers import register_error_handlers
from .api.gate import AccountValidationMiddleware
from .api.routes import router as dmat_router
from .config import Settings, get_settings
from .domain.service import AccountService
from .observability import setup_logging, shutdown_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Configure process-wide logging for the app lifecycle and flush it on shutdown."""
    settings: Settings = app.state.settings
    setup_logging(settings)
    logger.info("%s %s started (%s)", settings.app_name, settings.version, settings.environment)
    try:
        yield
    finally:
        logger.info("%s shutting down", settings.app_name)
        shutdown_logging()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application: routes, validation gate and error handlers."""
    settings = settings or get_settings()
    app = FastAPI(
        title=settings.app_name,
        version=settings.version,
        lifespan=lifespan,
        docs_url="/docs" if settings.docs_enabled else None,
        redoc_url="/redoc" if settings.docs_enabled else None,
        openapi_url="/openapi.json" if settings.docs_enabled else None,
    )
    app.state.settings = settings
    app.state.account_service = AccountService()

    app.add_middleware(AccountValidationMiddleware)
    if settings.https_redirect:
        app.add_middleware(HTTPSRedirectMiddleware)

    register_error_handlers(app)

    @app.get("/healthz", tags=["health"])
    def healthz() -> dict[str, str]:
        """Return a minimal readiness indicator used by orchestration systems."""
        return {"status": "ok"}

    @app.get("/metrics", include_in_schema=False)
    def metrics() -> Response:
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    app.include_router(dmat_router)
    return app


app = create_app()
