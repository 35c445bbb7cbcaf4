"""Video service: validation in front of the record store.

The transport layer calls these methods with decoded, typed inputs. Validation always runs
before the store is touched, and updates are validated on the merged record, never on the
patch alone.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Protocol

from src.videos.errors import EditConflictError
from src.videos.schema import Filters, NewVideo, Video, VideoPage, VideoPatch, apply_patch
from src.videos.validation import (
    ValidationLimits,
    Validator,
    validate_filters,
    validate_new_video,
    validate_video,
)

logger = logging.getLogger(__name__)


class VideoRepository(Protocol):
    """Operations the service needs from a record store (see `src.db.videos.VideoStore`)."""

    async def insert(self, new_video: NewVideo) -> Video: ...

    async def get(self, video_id: str) -> Video: ...

    async def update(self, video: Video) -> int: ...

    async def delete(self, video_id: str) -> None: ...

    async def list(self, title: str, description: str, filters: Filters) -> VideoPage: ...

    async def ping(self) -> None: ...


class VideoService:
    def __init__(self, store: VideoRepository, *, limits: ValidationLimits | None = None) -> None:
        self._store = store
        self._limits = limits or ValidationLimits()

    async def create(self, new_video: NewVideo, *, now: datetime | None = None) -> Video:
        v = Validator()
        validate_new_video(v, new_video, self._limits, now=now)
        v.raise_if_invalid()

        return await self._store.insert(new_video)

    async def show(self, video_id: str) -> Video:
        return await self._store.get(video_id)

    async def update(
            self,
            video_id: str,
            patch: VideoPatch,
            *,
            expected_version: int | None = None,
            now: datetime | None = None,
    ) -> Video:
        """Apply a sparse patch using optimistic concurrency.

        If `expected_version` is given it must equal the freshly loaded version; otherwise the
        update is rejected before any write. The store then performs its own compare-and-swap on
        the loaded version, which catches writers that slip in between the read and the write.

        Raises:
            RecordNotFoundError: If the video does not exist.
            EditConflictError: If either version check fails.
            FailedValidationError: If the merged record violates the record rules.
        """

        video = await self._store.get(video_id)

        if expected_version is not None and expected_version != video.version:
            logger.info(
                "edit conflict video_id=%s expected_version=%s current_version=%s",
                video_id,
                expected_version,
                video.version,
            )
            raise EditConflictError(
                f"video {video_id!r} is at version {video.version}, not {expected_version}"
            )

        merged = apply_patch(video, patch)

        v = Validator()
        validate_video(v, merged, self._limits, now=now)
        v.raise_if_invalid()

        new_version = await self._store.update(merged)
        return merged.model_copy(update={"version": new_version})

    async def delete(self, video_id: str) -> None:
        await self._store.delete(video_id)

    async def list(self, title: str, description: str, filters: Filters) -> VideoPage:
        v = Validator()
        validate_filters(v, filters)
        v.raise_if_invalid()

        return await self._store.list(title, description, filters)

    async def ping(self) -> None:
        await self._store.ping()
