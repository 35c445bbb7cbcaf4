"""Tests for the listing SQL builder (allowlists + parameter binding)."""

from __future__ import annotations

import pytest

from src.sql.builder import SQLBuilderError, build_list_query, resolve_sort
from src.sql.columns import SORT_COLUMNS
from src.videos.schema import Filters, SortDirection


def _placeholder_count(sql: str) -> int:
    return sql.count("%s")


def test_build_list_query_defaults_match_everything() -> None:
    built = build_list_query("", "", Filters())

    assert "plainto_tsquery" not in built.sql
    assert "WHERE" not in built.sql
    assert "COUNT(*)::bigint AS total_records FROM matched" in built.sql
    assert "LEFT JOIN LATERAL" in built.sql
    assert "ORDER BY m.video_id ASC" in built.sql
    assert built.params == (20, 0)
    assert _placeholder_count(built.sql) == len(built.params)


def test_build_list_query_search_terms_are_parameterized() -> None:
    built = build_list_query("Intro'; DROP TABLE videos; --", "cooking", Filters())

    assert "to_tsvector('simple', title) @@ plainto_tsquery('simple', %s)" in built.sql
    assert "to_tsvector('simple', description) @@ plainto_tsquery('simple', %s)" in built.sql
    assert "DROP TABLE" not in built.sql
    assert built.params[:2] == ("Intro'; DROP TABLE videos; --", "cooking")
    assert _placeholder_count(built.sql) == len(built.params)


def test_build_list_query_whitespace_term_is_a_wildcard() -> None:
    built = build_list_query("   ", "", Filters())

    assert "plainto_tsquery" not in built.sql
    assert built.params == (20, 0)


def test_build_list_query_only_description_term() -> None:
    built = build_list_query("", "news", Filters())

    assert "WHERE to_tsvector('simple', description)" in built.sql
    assert "to_tsvector('simple', title)" not in built.sql
    assert built.params == ("news", 20, 0)


def test_build_list_query_pagination_limit_and_offset() -> None:
    built = build_list_query("", "", Filters(page=3, page_size=25))

    assert built.sql.rstrip().endswith("ORDER BY p.video_id ASC")
    assert "LIMIT %s OFFSET %s" in built.sql
    assert built.params == (25, 50)


def test_build_list_query_descending_sort_adds_stable_tiebreaker() -> None:
    built = build_list_query("", "", Filters(sort="-length"))

    assert "ORDER BY m.length DESC, m.video_id ASC" in built.sql
    assert "ORDER BY p.length DESC, p.video_id ASC" in built.sql


def test_build_list_query_id_alias_sorts_by_video_id() -> None:
    built = build_list_query("", "", Filters(sort="-id"))

    assert "ORDER BY m.video_id DESC" in built.sql
    assert "m.video_id DESC, m.video_id" not in built.sql


@pytest.mark.parametrize("sort", ["views", "title; DROP TABLE videos", "--title", "TITLE", ""])
def test_build_list_query_rejects_sort_outside_allowlist(sort: str) -> None:
    with pytest.raises(SQLBuilderError):
        build_list_query("", "", Filters(sort=sort))


def test_build_list_query_rejects_non_positive_paging() -> None:
    with pytest.raises(SQLBuilderError):
        build_list_query("", "", Filters(page=0))


def test_sort_allowlist_has_ascending_and_descending_pairs() -> None:
    assert resolve_sort("title") == ("title", SortDirection.asc)
    assert resolve_sort("-title") == ("title", SortDirection.desc)
    for token, (column, direction) in SORT_COLUMNS.items():
        opposite = token[1:] if token.startswith("-") else f"-{token}"
        assert SORT_COLUMNS[opposite][0] == column
        assert SORT_COLUMNS[opposite][1] != direction
