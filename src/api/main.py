"""API process entrypoint.

Run with:
    python -m src.api.main
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from src.api import __version__
from src.api.errors import register_error_handlers
from src.api.routes import router
from src.app import App, create_app
from src.config.logging import configure_logging
from src.config.settings import load_settings

logger = logging.getLogger(__name__)


def create_api(app: App) -> FastAPI:
    """Build the FastAPI application around an application container.

    The lifespan opens the DB pool on startup and closes it on shutdown.
    """

    @asynccontextmanager
    async def lifespan(_api: FastAPI) -> AsyncIterator[None]:
        await app.pool.open(wait=True)
        logger.info("database pool opened")
        try:
            yield
        finally:
            logger.info("shutting down")
            await app.pool.close()

    api = FastAPI(title="Video Catalog API", version=__version__, lifespan=lifespan)
    api.state.container = app
    register_error_handlers(api)
    api.include_router(router)
    return api


def main() -> None:
    """Load settings, configure logging and serve the API with uvicorn."""

    settings = load_settings()
    configure_logging(settings.log_level)

    api = create_api(create_app(settings))
    uvicorn.run(api, host=settings.api_host, port=settings.api_port, log_config=None)


if __name__ == "__main__":
    main()
