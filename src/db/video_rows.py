"""Row conversion helpers for the `videos` table.

The record store and the integration tests both convert between `Video` models and row tuples.
Keeping this conversion in one place prevents drift between column order in SQL and in Python.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from src.sql.columns import VIDEO_COLUMNS
from src.videos.schema import NewVideo, Video


def video_from_row(row: Sequence[Any]) -> Video:
    """Build a `Video` from a row whose columns follow `VIDEO_COLUMNS` order."""

    return Video.model_validate(dict(zip(VIDEO_COLUMNS, row, strict=True)))


def insert_params(video: NewVideo) -> tuple[Any, ...]:
    """Parameters for `INSERT INTO videos (...)`, excluding store-assigned columns."""

    return (
        video.video_id,
        video.title,
        video.description,
        video.type,
        int(video.length),
        video.language,
        video.published_at,
    )


def update_params(video: Video) -> tuple[Any, ...]:
    """Parameters for the conditional update: new values, then `video_id` and expected version."""

    return (
        video.title,
        video.description,
        video.type,
        int(video.length),
        video.language,
        video.published_at,
        video.video_id,
        video.version,
    )
