"""Video API endpoints.

Routes are THIN: they decode the request into typed models, call the video service and wrap the
result in a JSON envelope. Typed failures raised by the service are mapped to status codes by
the handlers registered in `src.api.errors`.
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

from fastapi import APIRouter, Depends, Header, Request, Response

from src.api import __version__
from src.app import App
from src.videos.errors import VideoError
from src.videos.schema import (
    DEFAULT_PAGE,
    DEFAULT_PAGE_SIZE,
    DEFAULT_SORT,
    Filters,
    NewVideo,
    Video,
    VideoPatch,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1")


def get_container(request: Request) -> App:
    return request.app.state.container


def _video_envelope(video: Video) -> dict[str, Any]:
    return {"video": video.model_dump(mode="json")}


@router.get("/healthcheck", tags=["health"])
async def healthcheck(app: App = Depends(get_container)) -> dict[str, Any]:
    """Report service status and whether the database answers."""

    try:
        await app.service.ping()
        database = "connected"
    except VideoError as exc:
        logger.warning("healthcheck database ping failed: %s", exc)
        database = "unavailable"

    return {
        "status": "available" if database == "connected" else "degraded",
        "database": database,
        "system_info": {
            "environment": app.settings.app_env,
            "version": __version__,
        },
    }


@router.post("/videos", status_code=201, tags=["videos"])
async def create_video(
        payload: NewVideo,
        response: Response,
        app: App = Depends(get_container),
) -> dict[str, Any]:
    video = await app.service.create(payload)
    response.headers["Location"] = f"/v1/videos/{quote(video.video_id, safe='')}"
    return _video_envelope(video)


@router.get("/videos/{video_id}", tags=["videos"])
async def show_video(video_id: str, app: App = Depends(get_container)) -> dict[str, Any]:
    return _video_envelope(await app.service.show(video_id))


@router.patch("/videos/{video_id}", tags=["videos"])
async def update_video(
        video_id: str,
        payload: VideoPatch,
        x_expected_version: int | None = Header(default=None),
        app: App = Depends(get_container),
) -> dict[str, Any]:
    """Apply a partial update.

    Clients that send `X-Expected-Version` get a conflict if the record has moved on since they
    read it, before any write is attempted.
    """

    video = await app.service.update(video_id, payload, expected_version=x_expected_version)
    return _video_envelope(video)


@router.delete("/videos/{video_id}", tags=["videos"])
async def delete_video(video_id: str, app: App = Depends(get_container)) -> dict[str, Any]:
    await app.service.delete(video_id)
    return {"message": "video successfully deleted"}


@router.get("/videos", tags=["videos"])
async def list_videos(
        title: str = "",
        description: str = "",
        page: int = DEFAULT_PAGE,
        page_size: int = DEFAULT_PAGE_SIZE,
        sort: str = DEFAULT_SORT,
        app: App = Depends(get_container),
) -> dict[str, Any]:
    """List videos with full-text search on title/description, sorting and pagination."""

    filters = Filters(page=page, page_size=page_size, sort=sort)
    result = await app.service.list(title, description, filters)
    return {
        "videos": [v.model_dump(mode="json") for v in result.videos],
        "metadata": result.metadata.model_dump(),
    }
