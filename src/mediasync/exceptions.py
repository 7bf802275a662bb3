"""Domain level exceptions for the capture and sync core."""

from __future__ import annotations

from contextlib import contextmanager
from enum import StrEnum
from typing import Iterator

from sqlalchemy import exc as sa_exc

__all__ = [
    "MediaSyncError",
    "CopyError",
    "DeleteError",
    "FileReadError",
    "PersistenceError",
    "LocationError",
    "UploadError",
    "UploadFailureReason",
    "ItemNotFoundError",
    "InvalidItemIdError",
    "CaptureAbortedError",
    "handle_sqlalchemy_errors",
]


class MediaSyncError(Exception):
    """Base class for errors raised by the sync core."""


class CopyError(MediaSyncError):
    """Raised when a captured file cannot be copied into managed storage."""


class DeleteError(MediaSyncError):
    """Raised when a managed file is missing or cannot be removed."""


class FileReadError(MediaSyncError):
    """Raised when a managed file cannot be read back."""


class PersistenceError(MediaSyncError):
    """Raised when the key-value layer fails or holds an unreadable index."""


class LocationError(MediaSyncError):
    """Raised when the location provider fails or exceeds its wait budget."""


class ItemNotFoundError(MediaSyncError, KeyError):
    """Raised when an identifier is not present in the media index."""


class InvalidItemIdError(MediaSyncError, ValueError):
    """Raised when an identifier is not a bare file name inside managed storage."""


class CaptureAbortedError(MediaSyncError):
    """Raised when a capture source fails to supply a file."""


class UploadFailureReason(StrEnum):
    """Reasons an upload task can end in ``failed``."""

    TRANSPORT = "transport"
    SERVER_REJECTED = "server-rejected"
    MALFORMED_RESPONSE = "malformed-response"
    UNREADABLE = "unreadable"


class UploadError(MediaSyncError):
    """Raised internally when an upload attempt fails."""

    def __init__(self, reason: UploadFailureReason, message: str = "") -> None:
        self.reason = reason
        super().__init__(message or reason.value)


@contextmanager
def handle_sqlalchemy_errors(*, key: str | None = None) -> Iterator[None]:
    """Translate SQLAlchemy errors into :class:`PersistenceError`."""

    try:
        yield
    except sa_exc.SQLAlchemyError as exc:
        detail = f"key '{key}': " if key else ""
        raise PersistenceError(f"{detail}database operation failed") from exc
