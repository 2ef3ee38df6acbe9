"""FastAPI application factory for the Hanna Code service."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ..config import HannaSettings, create_repository
from ..errors import StoreError
from ..logging_setup import configure_logging
from .routes import router

logger = logging.getLogger("hanna_code")


def create_app(settings: HannaSettings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""

    settings = settings or HannaSettings.from_env()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        repository = getattr(app.state, "repository", None)
        if repository is None:
            repository = create_repository(settings)
            app.state.repository = repository
        repository.install()
        yield
        repository.engine.dispose()

    app = FastAPI(
        title="Hanna Code API",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.include_router(router)

    @app.exception_handler(StoreError)
    async def _store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
        logger.error("Store failure while handling %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=503, content={"detail": str(exc)})

    return app


app = create_app()


__all__ = ["app", "create_app"]
