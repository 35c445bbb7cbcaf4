"""Video record schema (Pydantic models).

These models are the contract between the transport layer, the validation engine and the record
store. They only enforce *types*; business rules (non-empty text, byte limits, positive length,
publication date) live in `src.videos.validation` so every violation can be reported at once.
"""

from __future__ import annotations

import math
from enum import StrEnum

from pydantic import AwareDatetime, BaseModel, ConfigDict

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 20
DEFAULT_SORT = "id"


class SortDirection(StrEnum):
    """SQL sort directions accepted by the query builder."""

    asc = "ASC"
    desc = "DESC"


class Video(BaseModel):
    """A persisted video record, including store-assigned fields."""

    model_config = ConfigDict(extra="forbid")

    video_id: str
    title: str
    description: str
    type: str
    length: int
    language: str
    published_at: AwareDatetime
    created_at: AwareDatetime
    version: int


class NewVideo(BaseModel):
    """Insert payload: every writable field is required."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    video_id: str
    title: str
    description: str
    type: str
    length: int
    language: str
    published_at: AwareDatetime


class VideoPatch(BaseModel):
    """Sparse update payload.

    A field set to `None` (or omitted) is absent and leaves the stored value untouched. The
    identifier, `created_at` and `version` are not patchable.
    """

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    title: str | None = None
    description: str | None = None
    type: str | None = None
    length: int | None = None
    language: str | None = None
    published_at: AwareDatetime | None = None

    def changes(self) -> dict[str, object]:
        """Return only the fields present in the patch."""

        return self.model_dump(exclude_none=True)


def apply_patch(video: Video, patch: VideoPatch) -> Video:
    """Merge a patch over a fetched snapshot and return the merged record.

    The result still carries the snapshot's version, which the store uses as the expected value
    of its compare-and-swap.
    """

    return video.model_copy(update=patch.changes())


class Filters(BaseModel):
    """Pagination and sorting constraints for the listing endpoint."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    page: int = DEFAULT_PAGE
    page_size: int = DEFAULT_PAGE_SIZE
    sort: str = DEFAULT_SORT

    @property
    def limit(self) -> int:
        return self.page_size

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


class Metadata(BaseModel):
    """Pagination metadata derived from the total matching record count."""

    current_page: int
    page_size: int
    total_pages: int
    total_records: int


def calculate_metadata(total_records: int, page: int, page_size: int) -> Metadata:
    """Derive pagination metadata; `total_pages` is 0 when nothing matches."""

    return Metadata(
        current_page=page,
        page_size=page_size,
        total_pages=math.ceil(total_records / page_size) if total_records else 0,
        total_records=total_records,
    )


class VideoPage(BaseModel):
    """One page of listing results plus its metadata."""

    videos: list[Video]
    metadata: Metadata
