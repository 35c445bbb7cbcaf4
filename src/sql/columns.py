"""Allowlisted SQL identifiers.

All column names and sort directions referenced in generated SQL must come from these mappings;
no user-provided identifier should ever be interpolated into SQL.
"""

from __future__ import annotations

from src.videos.schema import SortDirection

VIDEO_COLUMNS: tuple[str, ...] = (
    "video_id",
    "title",
    "description",
    "type",
    "length",
    "language",
    "published_at",
    "created_at",
    "version",
)

# Client sort token -> (column, direction). `id` is the public alias of `video_id`.
_SORTABLE: dict[str, str] = {
    "id": "video_id",
    "video_id": "video_id",
    "title": "title",
    "description": "description",
    "type": "type",
    "length": "length",
    "language": "language",
    "published_at": "published_at",
    "created_at": "created_at",
}

SORT_COLUMNS: dict[str, tuple[str, SortDirection]] = {
    **{token: (column, SortDirection.asc) for token, column in _SORTABLE.items()},
    **{f"-{token}": (column, SortDirection.desc) for token, column in _SORTABLE.items()},
}

# Columns searched with full-text matching; each has a GIN index on to_tsvector('simple', col).
SEARCH_COLUMNS: tuple[str, ...] = ("title", "description")
