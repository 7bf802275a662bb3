"""Status messages emitted to the user-facing notification sink."""

from __future__ import annotations

import logging
from collections.abc import Callable

UPLOAD_COMPLETE = "File upload complete."
UPLOAD_FAILED = "File upload failed."
FILE_REMOVED = "File removed"
STORE_FAILED = "Error while storing file."
READ_FAILED = "Error while reading file"

NotificationSink = Callable[[str], None]

logger = logging.getLogger(__name__)


class LoggingNotificationSink:
    """Default sink used when no UI is attached."""

    def __call__(self, message: str) -> None:
        logger.info("sync.notification", extra={"notification": message})


class RecordingNotificationSink:
    """Keeps every message in order; handy for previews and tests."""

    def __init__(self) -> None:
        self.messages: list[str] = []

    def __call__(self, message: str) -> None:
        self.messages.append(message)
