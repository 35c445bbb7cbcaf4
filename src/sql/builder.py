"""Deterministic SQL builder for the video listing endpoint.

The builder converts free-text search terms and validated `Filters` into a single parameterized
query. Identifiers (columns, sort directions) are strictly allowlisted; only values become bound
parameters.

The query returns the total number of matching rows alongside the requested page, in the same
statement. It always yields at least one row carrying the total, so asking for a page past the
end still reports the true count.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from src.sql.columns import SEARCH_COLUMNS, SORT_COLUMNS, VIDEO_COLUMNS
from src.videos.schema import Filters, SortDirection

TEXT_SEARCH_CONFIG = "simple"


class SQLBuilderError(ValueError):
    """Raised when listing parameters cannot be converted into deterministic SQL."""


@dataclass(frozen=True)
class BuiltQuery:
    """A parameterized SQL query ready for execution."""

    sql: str
    params: tuple[Any, ...]


def resolve_sort(sort: str) -> tuple[str, SortDirection]:
    """Map a client sort token onto an allowlisted (column, direction) pair."""

    try:
        return SORT_COLUMNS[sort]
    except KeyError as exc:
        raise SQLBuilderError(f"Unsupported sort key: {sort!r}") from exc


def _where_and(clauses: list[str]) -> str:
    if not clauses:
        return ""
    return "WHERE " + " AND ".join(clauses)


def _build_search_clause(column: str) -> str:
    if column not in SEARCH_COLUMNS:
        raise SQLBuilderError(f"Column is not searchable: {column}")
    return (
        f"to_tsvector('{TEXT_SEARCH_CONFIG}', {column}) "
        f"@@ plainto_tsquery('{TEXT_SEARCH_CONFIG}', %s)"
    )


def _append_search(clauses: list[str], params: list[Any], *, column: str, term: str) -> None:
    # An empty term is a wildcard, not "match nothing".
    term = (term or "").strip()
    if not term:
        return
    clauses.append(_build_search_clause(column))
    params.append(term)


def _order_by(alias: str, column: str, direction: SortDirection) -> str:
    order = f"{alias}.{column} {direction.value}"
    if column != "video_id":
        # Stable tiebreaker so pages never overlap or skip rows.
        order += f", {alias}.video_id ASC"
    return order


def build_list_query(title: str, description: str, filters: Filters) -> BuiltQuery:
    """Build the paginated, searchable listing query.

    Result columns: `total_records` followed by `VIDEO_COLUMNS`. When the page is empty the
    single returned row has NULL video columns.
    """

    column, direction = resolve_sort(filters.sort)
    if filters.page < 1 or filters.page_size < 1:
        raise SQLBuilderError("page and page_size must be positive")

    clauses: list[str] = []
    params: list[Any] = []
    _append_search(clauses, params, column="title", term=title)
    _append_search(clauses, params, column="description", term=description)

    select_cols = ", ".join(VIDEO_COLUMNS)
    page_cols = ", ".join(f"p.{c}" for c in VIDEO_COLUMNS)

    sql = (
        f"WITH matched AS (SELECT {select_cols} FROM videos {_where_and(clauses)}) "
        f"SELECT t.total_records, {page_cols} "
        "FROM (SELECT COUNT(*)::bigint AS total_records FROM matched) t "
        "LEFT JOIN LATERAL ("
        f"SELECT {select_cols} FROM matched m "
        f"ORDER BY {_order_by('m', column, direction)} "
        "LIMIT %s OFFSET %s"
        ") p ON TRUE "
        f"ORDER BY {_order_by('p', column, direction)}"
    )
    params.extend([filters.limit, filters.offset])
    return BuiltQuery(sql=sql, params=tuple(params))
