"""Error envelopes and exception-to-status mapping.

Every error response has the shape `{"error": <message or field map>}`. Expected outcomes
(not found, edit conflict, validation) are logged at INFO at most; store failures and anything
unhandled are logged with a traceback and hidden behind a generic 500 message.
"""

from __future__ import annotations

import logging
from time import monotonic
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import RequestResponseEndpoint

from src.videos.errors import (
    DuplicateVideoError,
    EditConflictError,
    FailedValidationError,
    RecordNotFoundError,
    StoreError,
    StoreTimeoutError,
)

logger = logging.getLogger(__name__)

NOT_FOUND_MESSAGE = "the requested resource could not be found"
EDIT_CONFLICT_MESSAGE = "unable to update the record due to an edit conflict, please try again"
DUPLICATE_MESSAGE = "a video with this id already exists"
SERVER_ERROR_MESSAGE = "the server encountered a problem and could not process your request"


def error_response(status_code: int, message: Any) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


async def _failed_validation(_request: Request, exc: FailedValidationError) -> Response:
    return error_response(422, exc.errors)


async def _not_found(_request: Request, _exc: Exception) -> Response:
    return error_response(404, NOT_FOUND_MESSAGE)


async def _edit_conflict(request: Request, exc: Exception) -> Response:
    logger.info("edit conflict path=%s reason=%s", request.url.path, exc)
    return error_response(409, EDIT_CONFLICT_MESSAGE)


async def _duplicate(_request: Request, _exc: Exception) -> Response:
    return error_response(409, {"video_id": DUPLICATE_MESSAGE})


async def _server_error(request: Request, exc: Exception) -> Response:
    logger.error(
        "store failure method=%s path=%s",
        request.method,
        request.url.path,
        exc_info=exc,
    )
    return error_response(500, SERVER_ERROR_MESSAGE)


def _field_name(loc: tuple[Any, ...]) -> str:
    parts = [str(p) for p in loc[1:]] or [str(p) for p in loc]
    return ".".join(parts)


async def _request_validation(_request: Request, exc: RequestValidationError) -> Response:
    """Malformed query parameters are a validation failure; malformed bodies are a bad request."""

    query_errors: dict[str, str] = {}
    for err in exc.errors():
        loc = tuple(err.get("loc", ()))
        if loc and loc[0] == "query":
            query_errors.setdefault(_field_name(loc), str(err.get("msg", "is invalid")))
        else:
            return error_response(400, f"{_field_name(loc)}: {err.get('msg', 'is invalid')}")
    return error_response(422, query_errors)


async def _http_exception(request: Request, exc: StarletteHTTPException) -> Response:
    if exc.status_code == 404:
        return error_response(404, NOT_FOUND_MESSAGE)
    if exc.status_code == 405:
        return error_response(
            405,
            f"the {request.method} method is not supported for this resource",
        )
    return error_response(exc.status_code, exc.detail)


async def recover_and_log(request: Request, call_next: RequestResponseEndpoint) -> Response:
    """Convert any unhandled exception into a 500 envelope and log request latency."""

    started = monotonic()
    # noinspection PyBroadException
    try:
        response = await call_next(request)
    except Exception:
        # Request boundary: never leak internals; the traceback goes to the log only.
        logger.exception("request failed method=%s path=%s", request.method, request.url.path)
        response = error_response(500, SERVER_ERROR_MESSAGE)

    latency_ms = int((monotonic() - started) * 1000)
    logger.info(
        "handled method=%s path=%s status=%d latency_ms=%d",
        request.method,
        request.url.path,
        response.status_code,
        latency_ms,
    )
    return response


def register_error_handlers(api: FastAPI) -> None:
    api.add_exception_handler(FailedValidationError, _failed_validation)
    api.add_exception_handler(RecordNotFoundError, _not_found)
    api.add_exception_handler(EditConflictError, _edit_conflict)
    api.add_exception_handler(DuplicateVideoError, _duplicate)
    api.add_exception_handler(StoreTimeoutError, _server_error)
    api.add_exception_handler(StoreError, _server_error)
    api.add_exception_handler(RequestValidationError, _request_validation)
    api.add_exception_handler(StarletteHTTPException, _http_exception)
    api.middleware("http")(recover_and_log)
