"""Application composition root.

This module wires together configuration, the DB pool, the record store and the video service
for the API runtime.
"""

from __future__ import annotations

from dataclasses import dataclass

from psycopg_pool import AsyncConnectionPool

from src.config.settings import Settings
from src.db.pool import create_pool
from src.db.videos import VideoStore
from src.videos.service import VideoService
from src.videos.validation import ValidationLimits


@dataclass(frozen=True)
class App:
    """Shared application dependencies for request handlers."""

    settings: Settings
    pool: AsyncConnectionPool
    store: VideoStore
    service: VideoService


def create_app(settings: Settings) -> App:
    """Create the application container.

    Note:
        The returned DB pool is not opened. Call `await app.pool.open()` at startup.
    """

    pool = create_pool(
        settings.database_url,
        min_size=settings.db_pool_min_size,
        max_size=settings.db_pool_max_size,
        timeout=settings.query_timeout_s,
        statement_timeout_s=settings.query_timeout_s,
    )
    store = VideoStore(pool, timeout_s=settings.query_timeout_s)
    limits = ValidationLimits(
        title_max_bytes=settings.title_max_bytes,
        description_max_bytes=settings.description_max_bytes,
        language_max_bytes=settings.language_max_bytes,
    )
    return App(
        settings=settings,
        pool=pool,
        store=store,
        service=VideoService(store, limits=limits),
    )
