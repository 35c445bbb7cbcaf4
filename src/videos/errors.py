"""Typed failures returned by the video service and record store.

Mapping these to HTTP status codes is the transport layer's job (see `src.api.errors`).
"""

from __future__ import annotations


class VideoError(Exception):
    """Base class for every failure surfaced by the video core."""


class FailedValidationError(VideoError):
    """Raised when one or more fields violate the record rules."""

    def __init__(self, errors: dict[str, str]) -> None:
        super().__init__("; ".join(f"{field}: {message}" for field, message in errors.items()))
        self.errors = dict(errors)


class RecordNotFoundError(VideoError):
    """Raised when no video matches the requested identifier."""


class EditConflictError(VideoError):
    """Raised when an update's expected version no longer matches the stored version."""


class DuplicateVideoError(VideoError):
    """Raised when inserting an identifier that is, or once was, in use."""


class StoreTimeoutError(VideoError):
    """Raised when the store does not answer within the per-operation deadline."""


class StoreError(VideoError):
    """Opaque internal store failure; details are logged, never returned to clients."""
