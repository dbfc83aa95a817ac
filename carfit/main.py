"""FastAPI application factory."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from carfit import __version__
from carfit.api.v1.router import api_router
from carfit.core.config import settings
from carfit.core.exceptions import register_exception_handlers
from carfit.core.logging import setup_logging
from carfit.db.session import dispose_engines
from carfit.services.limits import close_client


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    logger.info("Starting %s (%s)", settings.PROJECT_NAME, settings.ENV)
    yield
    await close_client()
    await dispose_engines()
    logger.info("Stopped %s", settings.PROJECT_NAME)


def create_application() -> FastAPI:
    setup_logging(settings.LOG_LEVEL)
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=__version__,
        debug=settings.DEBUG,
        lifespan=lifespan,
    )
    register_exception_handlers(app)
    app.include_router(api_router, prefix=f"{settings.API_PREFIX}/v1")

    @app.get("/health", tags=["health"])
    async def health():
        return {"status": "ok", "env": settings.ENV}

    return app


app = create_application()
