"""Postgres connection settings shared by the pool, migrations and tests.

Every session runs with its timezone locked to UTC so `TIMESTAMPTZ` values come back as UTC
instants. Connections are tagged with an application name to make them easy to spot in
`pg_stat_activity`.
"""

from __future__ import annotations

import os

import psycopg
from psycopg.conninfo import make_conninfo

APPLICATION_NAME = "video-catalog-api"


def require_database_url() -> str:
    """Read `DATABASE_URL` from the environment or raise a clear error."""

    database_url = os.getenv("DATABASE_URL")
    if not database_url:
        raise RuntimeError("DATABASE_URL is required (set it in .env or environment)")
    return database_url


def build_conninfo(database_url: str, *, search_path: str | None = None) -> str:
    """Extend a connection URL with the session options used by this service.

    `search_path` is only used by tests that run against an isolated schema.
    """

    options = "-c timezone=UTC"
    if search_path:
        options += f" -c search_path={search_path}"
    return make_conninfo(database_url, application_name=APPLICATION_NAME, options=options)


def connect_utc(database_url: str, *, search_path: str | None = None) -> psycopg.Connection:
    """Open a synchronous connection (migrations, test fixtures) with the UTC session options."""

    return psycopg.connect(build_conninfo(database_url, search_path=search_path))
