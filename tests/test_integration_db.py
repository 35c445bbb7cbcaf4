"""Integration tests against a real Postgres database.

These tests exercise the record store end to end: migrations -> psycopg async pool -> CRUD,
optimistic concurrency and the full-text listing query.

They are skipped if `DATABASE_URL` is not configured or the DB is unreachable.
"""

from __future__ import annotations

import asyncio
import os
import uuid
from collections.abc import AsyncIterator, Iterator
from datetime import UTC, datetime, timedelta
from typing import NoReturn

import psycopg
import pytest
from dotenv import load_dotenv
from psycopg import sql

from src.db.connection import connect_utc
from src.db.migrate import apply_sql_file, list_migration_files
from src.db.pool import create_pool
from src.db.videos import VideoStore
from src.sql.builder import SQLBuilderError
from src.videos.errors import DuplicateVideoError, EditConflictError, RecordNotFoundError
from src.videos.schema import Filters, NewVideo

PUBLISHED = datetime(2024, 3, 1, 9, 0, tzinfo=UTC)


def _skip(reason: str) -> NoReturn:
    pytest.skip(reason)


def _require_database_url() -> str:
    load_dotenv(".env")
    database_url = os.getenv("DATABASE_URL")
    if not database_url:
        _skip("DATABASE_URL is not set; skipping integration tests")
    return database_url


@pytest.fixture
def prepared_schema() -> Iterator[str]:
    """Create an isolated schema and run every migration into it."""

    database_url = _require_database_url()
    schema = f"it_{uuid.uuid4().hex}"

    try:
        conn_ctx = connect_utc(database_url)
    except psycopg.OperationalError as exc:
        _skip(f"Postgres is unreachable ({exc}); skipping integration tests")

    with conn_ctx as conn:
        with conn.transaction():
            conn.execute(
                sql.SQL("CREATE SCHEMA {}").format(sql.Identifier(schema)),
                prepare=False,
            )
            conn.execute(
                sql.SQL("SET search_path TO {}").format(sql.Identifier(schema)),
                prepare=False,
            )
            for file_path in list_migration_files():
                apply_sql_file(conn, file_path)

    yield schema

    # noinspection PyBroadException
    try:
        with psycopg.connect(database_url) as conn:
            with conn.transaction():
                conn.execute(
                    sql.SQL("DROP SCHEMA IF EXISTS {} CASCADE").format(sql.Identifier(schema)),
                    prepare=False,
                )
    except Exception:
        # Cleanup best-effort: do not fail test run on teardown.
        pass


@pytest.fixture
async def store(prepared_schema: str) -> AsyncIterator[VideoStore]:
    """A record store whose pooled connections resolve tables in the isolated schema."""

    db_pool = create_pool(_require_database_url(), max_size=4, search_path=prepared_schema)
    try:
        await db_pool.open(wait=True, timeout=10)
    except Exception as exc:
        _skip(f"Postgres is unreachable ({exc}); skipping integration tests")
    yield VideoStore(db_pool, timeout_s=5.0)
    await db_pool.close()


def _new_video(video_id: str = "v1", **overrides: object) -> NewVideo:
    fields: dict[str, object] = {
        "video_id": video_id,
        "title": "Intro",
        "description": "An introduction to the show",
        "type": "episode",
        "length": 120,
        "language": "en",
        "published_at": PUBLISHED,
    }
    fields.update(overrides)
    return NewVideo(**fields)


@pytest.mark.asyncio
async def test_insert_then_get_round_trips(store: VideoStore) -> None:
    new_video = _new_video()

    inserted = await store.insert(new_video)
    fetched = await store.get("v1")

    assert fetched == inserted
    assert fetched.version == 1
    assert fetched.published_at == PUBLISHED
    assert fetched.model_dump(exclude={"created_at", "version"}) == new_video.model_dump()


@pytest.mark.asyncio
async def test_worked_example_versions(store: VideoStore) -> None:
    await store.insert(_new_video())
    snapshot = await store.get("v1")
    assert snapshot.version == 1

    first = await store.update(snapshot.model_copy(update={"title": "Intro2"}))
    assert first == 2

    with pytest.raises(EditConflictError):
        await store.update(snapshot.model_copy(update={"title": "Intro3"}))

    current = await store.get("v1")
    assert current.title == "Intro2"
    assert current.version == 2
    assert current.created_at == snapshot.created_at


@pytest.mark.asyncio
async def test_concurrent_updates_exactly_one_wins(store: VideoStore) -> None:
    await store.insert(_new_video())
    snapshot = await store.get("v1")

    results = await asyncio.gather(
        store.update(snapshot.model_copy(update={"title": "Writer A"})),
        store.update(snapshot.model_copy(update={"title": "Writer B"})),
        return_exceptions=True,
    )

    successes = [r for r in results if isinstance(r, int)]
    conflicts = [r for r in results if isinstance(r, EditConflictError)]
    assert successes == [2]
    assert len(conflicts) == 1
    assert (await store.get("v1")).version == 2


@pytest.mark.asyncio
async def test_update_of_deleted_row_conflicts(store: VideoStore) -> None:
    await store.insert(_new_video())
    snapshot = await store.get("v1")
    await store.delete("v1")

    with pytest.raises(EditConflictError):
        await store.update(snapshot)


@pytest.mark.asyncio
async def test_delete_semantics_and_identifier_non_reuse(store: VideoStore) -> None:
    with pytest.raises(RecordNotFoundError):
        await store.delete("ghost")

    await store.insert(_new_video())
    with pytest.raises(DuplicateVideoError):
        await store.insert(_new_video())

    await store.delete("v1")
    with pytest.raises(RecordNotFoundError):
        await store.get("v1")
    with pytest.raises(RecordNotFoundError):
        await store.delete("v1")
    with pytest.raises(DuplicateVideoError):
        await store.insert(_new_video())


@pytest.mark.asyncio
async def test_list_search_sort_and_pagination(store: VideoStore) -> None:
    await store.insert(_new_video("a", title="Cooking basics", length=300))
    await store.insert(_new_video("b", title="Advanced cooking", length=100))
    await store.insert(
        _new_video("c", title="Travel diaries", description="Cooking on the road", length=200)
    )
    await store.insert(_new_video("d", title="History", published_at=PUBLISHED - timedelta(days=1)))

    everything = await store.list("", "", Filters(sort="-length"))
    assert [v.video_id for v in everything.videos] == ["a", "c", "d", "b"]
    assert everything.metadata.total_records == 4

    by_title = await store.list("COOKING", "", Filters(sort="title"))
    assert [v.video_id for v in by_title.videos] == ["b", "a"]
    assert by_title.metadata.total_records == 2

    by_description = await store.list("", "cooking road", Filters())
    assert [v.video_id for v in by_description.videos] == ["c"]

    page = await store.list("", "", Filters(page=2, page_size=3, sort="id"))
    assert [v.video_id for v in page.videos] == ["d"]
    assert page.metadata.total_records == 4
    assert page.metadata.total_pages == 2

    beyond = await store.list("", "", Filters(page=7, page_size=3))
    assert beyond.videos == []
    assert beyond.metadata.total_records == 4
    assert beyond.metadata.current_page == 7


@pytest.mark.asyncio
async def test_list_unknown_sort_is_rejected(store: VideoStore) -> None:
    with pytest.raises(SQLBuilderError):
        await store.list("", "", Filters(sort="length; DROP TABLE videos"))


@pytest.mark.asyncio
async def test_pool_enforces_utc_timezone(store: VideoStore) -> None:
    await store.insert(_new_video())

    video = await store.get("v1")

    assert video.created_at.utcoffset() == timedelta(0)


@pytest.mark.asyncio
async def test_length_beyond_32_bits_round_trips(store: VideoStore) -> None:
    await store.insert(_new_video(length=3_000_000_000))

    video = await store.get("v1")

    assert video.length == 3_000_000_000
