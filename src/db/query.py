"""Safe DB query helpers.

These helpers never interpolate values into SQL: all values are passed via `params`. DB errors
are not swallowed; the caller decides how to classify them.
"""

from __future__ import annotations

from typing import Any, LiteralString, cast

from psycopg import AsyncConnection


async def fetch_one(
        conn: AsyncConnection,
        sql: str,
        params: tuple[Any, ...] = (),
) -> tuple[Any, ...] | None:
    """Execute a query and return its first row, or `None` when it yields no rows."""

    async with conn.cursor() as cur:
        await cur.execute(cast(LiteralString, sql), params)
        return await cur.fetchone()


async def fetch_all(
        conn: AsyncConnection,
        sql: str,
        params: tuple[Any, ...] = (),
) -> list[tuple[Any, ...]]:
    """Execute a query and return every row."""

    async with conn.cursor() as cur:
        await cur.execute(cast(LiteralString, sql), params)
        return await cur.fetchall()


async def execute_rowcount(conn: AsyncConnection, sql: str, params: tuple[Any, ...] = ()) -> int:
    """Execute a write statement and return the number of affected rows.

    Contract:
        - Returns `0` when nothing matched; callers must treat that as a distinct outcome rather
          than as success.
    """

    async with conn.cursor() as cur:
        await cur.execute(cast(LiteralString, sql), params)
        return max(cur.rowcount, 0)
