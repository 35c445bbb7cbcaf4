"""Async Postgres connection pool.

The record store runs every operation on a connection borrowed from an async pool (psycopg3).
Each new connection is configured once: UTC session timezone and, when requested, a server-side
`statement_timeout` matching the store's per-operation deadline.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from contextlib import asynccontextmanager
from typing import AsyncIterator

from dotenv import load_dotenv
from psycopg import AsyncConnection
from psycopg_pool import AsyncConnectionPool

from src.db.connection import build_conninfo, require_database_url


def session_configurator(
        statement_timeout_s: float | None = None,
) -> Callable[[AsyncConnection], Awaitable[None]]:
    """Return a pool `configure` callback for new connections."""

    async def _configure(conn: AsyncConnection) -> None:
        async with conn.cursor() as cur:
            await cur.execute("SET TIME ZONE 'UTC'", prepare=False)
            if statement_timeout_s is not None:
                await cur.execute(
                    "SELECT set_config('statement_timeout', %s, false)",
                    (f"{int(statement_timeout_s * 1000)}ms",),
                    prepare=False,
                )
        # `SET` starts a transaction when autocommit is disabled; commit so the pool doesn't see INTRANS.
        await conn.commit()

    return _configure


def create_pool(
        database_url: str | None = None,
        *,
        min_size: int = 1,
        max_size: int | None = None,
        timeout: float = 30.0,
        statement_timeout_s: float | None = None,
        search_path: str | None = None,
) -> AsyncConnectionPool:
    """Create an async DB pool.

    Notes:
        - The returned pool is created with `open=False`. Call `await pool.open()` at startup.
        - If `database_url` is omitted, the function loads `.env` and reads `DATABASE_URL`.
        - `timeout` bounds how long `connection()` waits for a free connection.
    """

    if database_url is None:
        load_dotenv(".env")
        database_url = require_database_url()

    return AsyncConnectionPool(
        conninfo=build_conninfo(database_url, search_path=search_path),
        min_size=min_size,
        max_size=max_size,
        timeout=timeout,
        open=False,
        configure=session_configurator(statement_timeout_s),
    )


@asynccontextmanager
async def get_conn(pool: AsyncConnectionPool) -> AsyncIterator[AsyncConnection]:
    """Borrow a connection for one unit of work.

    The pool commits the open transaction when the block exits cleanly and rolls it back when
    the block raises.
    """

    async with pool.connection() as conn:
        yield conn
