"""Record store for videos (PostgreSQL via psycopg3).

Every operation borrows one pooled connection, runs as a single transaction and is bounded by a
per-operation deadline covering both pool acquisition and execution. Nothing is retried here:
timeouts, conflicts and missing rows are classified and raised to the caller.

Updates use optimistic concurrency: the `UPDATE` only matches when both the identifier and the
expected version match, and it bumps the version in the same statement. Zero matched rows means
another writer got there first (or the row is gone) and surfaces as `EditConflictError`.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import psycopg
from psycopg import AsyncConnection
from psycopg.errors import QueryCanceled, UniqueViolation
from psycopg_pool import AsyncConnectionPool, PoolTimeout

from src.db.pool import get_conn
from src.db.query import execute_rowcount, fetch_all, fetch_one
from src.db.video_rows import insert_params, update_params, video_from_row
from src.sql.builder import build_list_query
from src.sql.columns import VIDEO_COLUMNS
from src.videos.errors import (
    DuplicateVideoError,
    EditConflictError,
    RecordNotFoundError,
    StoreError,
    StoreTimeoutError,
)
from src.videos.schema import Filters, NewVideo, Video, VideoPage, calculate_metadata

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 3.0

# Identifiers are claimed in an append-only registry so a deleted id can never be inserted again.
_CLAIM_ID_SQL = "INSERT INTO video_ids (video_id) VALUES (%s)"

_INSERT_SQL = """
    INSERT INTO videos (video_id, title, description, type, length, language, published_at)
    VALUES (%s, %s, %s, %s, %s, %s, %s)
    RETURNING created_at, version
"""

_GET_SQL = f"SELECT {', '.join(VIDEO_COLUMNS)} FROM videos WHERE video_id = %s"

_UPDATE_SQL = """
    UPDATE videos
    SET title = %s,
        description = %s,
        type = %s,
        length = %s,
        language = %s,
        published_at = %s,
        version = version + 1
    WHERE video_id = %s AND version = %s
    RETURNING version
"""

_DELETE_SQL = "DELETE FROM videos WHERE video_id = %s"


class VideoStore:
    """CRUD and listing operations against the `videos` table."""

    def __init__(self, pool: AsyncConnectionPool, *, timeout_s: float = DEFAULT_TIMEOUT_S) -> None:
        self._pool = pool
        self._timeout_s = timeout_s

    @asynccontextmanager
    async def _connection(self, operation: str) -> AsyncIterator[AsyncConnection]:
        try:
            async with asyncio.timeout(self._timeout_s):
                async with get_conn(self._pool) as conn:
                    yield conn
        except (TimeoutError, PoolTimeout, QueryCanceled) as exc:
            raise StoreTimeoutError(
                f"{operation} did not complete within {self._timeout_s}s"
            ) from exc
        except psycopg.Error as exc:
            raise StoreError(f"{operation} failed: {type(exc).__name__}") from exc

    async def insert(self, new_video: NewVideo) -> Video:
        """Insert a record; the store assigns `created_at` and `version = 1`."""

        async with self._connection("insert") as conn:
            try:
                await execute_rowcount(conn, _CLAIM_ID_SQL, (new_video.video_id,))
                row = await fetch_one(conn, _INSERT_SQL, insert_params(new_video))
            except UniqueViolation as exc:
                raise DuplicateVideoError(
                    f"video_id {new_video.video_id!r} is already in use"
                ) from exc

        if row is None:
            raise StoreError("insert returned no row")

        created_at, version = row
        logger.debug("inserted video_id=%s version=%s", new_video.video_id, version)
        return Video(**new_video.model_dump(), created_at=created_at, version=version)

    async def get(self, video_id: str) -> Video:
        if not video_id:
            raise RecordNotFoundError("empty video_id")

        async with self._connection("get") as conn:
            row = await fetch_one(conn, _GET_SQL, (video_id,))

        if row is None:
            raise RecordNotFoundError(f"video {video_id!r} not found")
        return video_from_row(row)

    async def update(self, video: Video) -> int:
        """Write `video` if its `version` is still current; return the new version.

        Raises:
            EditConflictError: If no row matched the identifier and expected version.
        """

        async with self._connection("update") as conn:
            row = await fetch_one(conn, _UPDATE_SQL, update_params(video))

        if row is None:
            raise EditConflictError(
                f"video {video.video_id!r} is no longer at version {video.version}"
            )

        (new_version,) = row
        logger.debug("updated video_id=%s version=%s", video.video_id, new_version)
        return int(new_version)

    async def delete(self, video_id: str) -> None:
        if not video_id:
            raise RecordNotFoundError("empty video_id")

        async with self._connection("delete") as conn:
            deleted = await execute_rowcount(conn, _DELETE_SQL, (video_id,))

        if deleted == 0:
            raise RecordNotFoundError(f"video {video_id!r} not found")
        logger.debug("deleted video_id=%s", video_id)

    async def list(self, title: str, description: str, filters: Filters) -> VideoPage:
        """Return one page of matching records plus metadata.

        An unknown sort key raises `SQLBuilderError` before a connection is acquired.
        """

        built = build_list_query(title, description, filters)

        async with self._connection("list") as conn:
            rows = await fetch_all(conn, built.sql, built.params)

        total_records = int(rows[0][0]) if rows else 0
        # An empty page still yields one row carrying the total, with NULL video columns.
        videos = [video_from_row(row[1:]) for row in rows if row[1] is not None]
        return VideoPage(
            videos=videos,
            metadata=calculate_metadata(total_records, filters.page, filters.page_size),
        )

    async def ping(self) -> None:
        """Round-trip a trivial query; used by the health check."""

        async with self._connection("ping") as conn:
            await fetch_one(conn, "SELECT 1")
