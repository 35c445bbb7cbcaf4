"""Field-level validation rules for video records and listing filters.

Checks never stop at the first failure: every violation is collected so a single response can
report all of them. The same record rules run on insert and on update, where they are applied to
the merged record rather than to the changed fields alone.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol

from src.sql.columns import SORT_COLUMNS
from src.videos.errors import FailedValidationError
from src.videos.schema import Filters, NewVideo

MAX_PAGE = 10_000_000
MAX_PAGE_SIZE = 100
# Upper bound of the BIGINT `length` column.
MAX_LENGTH = 2**63 - 1
NUL_MESSAGE = "must not contain NUL bytes"


class _VideoFields(Protocol):
    title: str
    description: str
    type: str
    length: int
    language: str
    published_at: datetime


@dataclass(frozen=True)
class ValidationLimits:
    """Configured byte limits for bounded text fields."""

    title_max_bytes: int = 500
    description_max_bytes: int = 5000
    language_max_bytes: int = 2


@dataclass
class Validator:
    """Collects `field -> message` violations; the first message recorded for a field wins."""

    errors: dict[str, str] = field(default_factory=dict)

    @property
    def valid(self) -> bool:
        return not self.errors

    def add_error(self, key: str, message: str) -> None:
        self.errors.setdefault(key, message)

    def check(self, ok: bool, key: str, message: str) -> None:
        if not ok:
            self.add_error(key, message)

    def raise_if_invalid(self) -> None:
        if not self.valid:
            raise FailedValidationError(self.errors)


def _byte_len(value: str) -> int:
    return len(value.encode("utf-8"))


def _check_text(v: Validator, key: str, value: str, max_bytes: int) -> None:
    v.check(value != "", key, "must be provided")
    v.check("\x00" not in value, key, NUL_MESSAGE)
    v.check(_byte_len(value) <= max_bytes, key, f"must not be more than {max_bytes} bytes long")


def validate_video(
        v: Validator,
        video: _VideoFields,
        limits: ValidationLimits,
        *,
        now: datetime | None = None,
) -> None:
    """Apply the record rules shared by insert and update."""

    current = now or datetime.now(UTC)

    _check_text(v, "title", video.title, limits.title_max_bytes)
    _check_text(v, "description", video.description, limits.description_max_bytes)

    v.check(video.type != "", "type", "must be provided")
    v.check("\x00" not in video.type, "type", NUL_MESSAGE)
    v.check(video.length > 0, "length", "must be greater than zero")
    v.check(video.length <= MAX_LENGTH, "length", f"must not be more than {MAX_LENGTH}")

    _check_text(v, "language", video.language, limits.language_max_bytes)

    v.check(video.published_at <= current, "published_at", "must not be in the future")


def validate_new_video(
        v: Validator,
        video: NewVideo,
        limits: ValidationLimits,
        *,
        now: datetime | None = None,
) -> None:
    """Insert path: the caller-supplied identifier must be present, then the record rules."""

    v.check(video.video_id.strip() != "", "video_id", "must be provided")
    v.check("\x00" not in video.video_id, "video_id", NUL_MESSAGE)
    validate_video(v, video, limits, now=now)


def validate_filters(v: Validator, filters: Filters) -> None:
    v.check(filters.page > 0, "page", "must be greater than zero")
    v.check(filters.page <= MAX_PAGE, "page", f"must be a maximum of {MAX_PAGE}")
    v.check(filters.page_size > 0, "page_size", "must be greater than zero")
    v.check(
        filters.page_size <= MAX_PAGE_SIZE,
        "page_size",
        f"must be a maximum of {MAX_PAGE_SIZE}",
    )
    v.check(filters.sort in SORT_COLUMNS, "sort", "invalid sort value")
