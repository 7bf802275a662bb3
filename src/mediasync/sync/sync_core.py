"""Orchestrates capture, deletion and upload of managed media."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum

import structlog

from ..exceptions import (
    CaptureAbortedError,
    CopyError,
    DeleteError,
    InvalidItemIdError,
    UploadFailureReason,
)
from ..location.location_tagger import LocationFix, LocationTagger
from ..media.file_mover import FileMover
from ..media.media_models import MediaIndex, MediaItem
from ..media.media_store import MediaStore
from ..upload.upload_models import TaskHandle, UploadOutcome, UploadState
from ..upload.upload_queue import UploadQueue
from . import notifications
from .capture import CapturedFile, CaptureSource
from .notifications import LoggingNotificationSink, NotificationSink

logger = logging.getLogger(__name__)

IndexSubscriber = Callable[[MediaIndex], None]


class SyncState(StrEnum):
    """Per-item sync status derived from the index and upload tasks."""

    ABSENT = "absent"
    INDEXED = "indexed"
    UPLOADING = "uploading"
    UPLOADED = "uploaded"


@dataclass(slots=True)
class SyncCore:
    """Drives the file mover, media store, location tagger and upload queue.

    Events:

    * ``capture``: file mover, then media store, then the optional location fix;
    * ``delete``: media store removal first, then the file, then any upload;
    * ``upload``: media store lookup, then the upload queue.
    """

    store: MediaStore
    file_mover: FileMover
    upload_queue: UploadQueue
    location_tagger: LocationTagger | None = None
    notify: NotificationSink = field(default_factory=LoggingNotificationSink)
    log: logging.Logger = field(default_factory=lambda: logger)
    _subscribers: list[IndexSubscriber] = field(default_factory=list, init=False, repr=False)
    _uploads: dict[str, TaskHandle] = field(default_factory=dict, init=False, repr=False)
    _uploaded: set[str] = field(default_factory=set, init=False, repr=False)

    def subscribe(self, subscriber: IndexSubscriber) -> Callable[[], None]:
        """Register for index snapshots; returns an unsubscribe callable."""
        self._subscribers.append(subscriber)

        def _unsubscribe() -> None:
            with contextlib.suppress(ValueError):
                self._subscribers.remove(subscriber)

        return _unsubscribe

    def load(self) -> MediaIndex:
        index = self.store.load()
        self._publish(index)
        return index

    def snapshot(self) -> MediaIndex:
        return self.store.snapshot()

    async def capture_from(self, source: CaptureSource, *, tag_location: bool = False) -> MediaItem:
        try:
            captured = await source.acquire()
        except Exception as exc:
            self.log.warning("sync.capture.aborted", extra={"error": str(exc)})
            raise CaptureAbortedError(f"capture source failed: {exc}") from exc
        return await self.capture(captured, tag_location=tag_location)

    async def capture(self, captured: CapturedFile, *, tag_location: bool = False) -> MediaItem:
        """Copy ``captured`` into storage and index it, newest first."""
        location_task: asyncio.Task[LocationFix | None] | None = None
        if tag_location and self.location_tagger is not None:
            location_task = asyncio.create_task(self.location_tagger.try_fix())

        try:
            item_id = await asyncio.to_thread(
                self.file_mover.materialize, captured.source_dir, captured.source_name
            )
        except CopyError:
            await self._discard_location(location_task)
            self.notify(notifications.STORE_FAILED)
            raise

        with structlog.contextvars.bound_contextvars(item_id=item_id):
            try:
                index = self.store.append(item_id)
            except Exception:
                await self._discard_location(location_task)
                raise
            self._publish(index)
            item = self.store.get(item_id)

            if location_task is not None:
                fix = await location_task
                if fix is not None and self.store.contains(item_id):
                    item = self.store.attach_location(item_id, fix)
                    self._publish(self.store.snapshot())

            self.log.info(
                "sync.capture.indexed",
                extra={"item_id": item_id, "tagged": item.location is not None},
            )
            return item

    async def delete(self, item_id: str) -> None:
        """Forget ``item_id``; the index entry goes even if the file cannot be removed.

        Only indexed identifiers reach the file mover, so a delete can never
        touch a file the index does not own.
        """
        with structlog.contextvars.bound_contextvars(item_id=item_id):
            indexed = self.store.contains(item_id) or item_id in self.store.persisted_ids()
            if not indexed:
                self.log.warning("sync.delete.unknown_item", extra={"item_id": item_id})
                return

            self.store.remove(item_id)
            self._uploaded.discard(item_id)
            self._publish(self.store.snapshot())

            try:
                self.file_mover.delete(self.file_mover.stored_path(item_id))
            except (DeleteError, InvalidItemIdError) as exc:
                self.log.warning(
                    "sync.delete.file_orphaned",
                    extra={"item_id": item_id, "error": str(exc)},
                )
            else:
                self.notify(notifications.FILE_REMOVED)

            handle = self._uploads.pop(item_id, None)
            if handle is not None and handle.cancel():
                self.log.info("sync.delete.upload_cancelled", extra={"item_id": item_id})

    async def upload(self, item_id: str) -> UploadOutcome:
        """Upload ``item_id``, reusing the active task for it when there is one."""
        existing = self._uploads.get(item_id)
        if existing is not None and existing.active:
            return await existing.wait()

        item = self.store.get(item_id)
        handle = self.upload_queue.enqueue(item)
        self._uploads[item_id] = handle
        try:
            outcome = await handle.wait()
        finally:
            if self._uploads.get(item_id) is handle:
                del self._uploads[item_id]

        with structlog.contextvars.bound_contextvars(item_id=item_id):
            if handle.cancelled or not self.store.contains(item_id):
                self.log.info("sync.upload.discarded", extra={"item_id": item_id})
                return outcome

            if outcome.state is UploadState.SUCCEEDED:
                self._uploaded.add(item_id)
                self.notify(notifications.UPLOAD_COMPLETE)
                return outcome

            self._uploaded.discard(item_id)
            if outcome.reason is UploadFailureReason.UNREADABLE:
                self.notify(notifications.READ_FAILED)
            else:
                self.notify(notifications.UPLOAD_FAILED)
            return outcome

    def active_upload(self, item_id: str) -> TaskHandle | None:
        handle = self._uploads.get(item_id)
        return handle if handle is not None and handle.active else None

    def sync_state(self, item_id: str) -> SyncState:
        if not self.store.contains(item_id):
            return SyncState.ABSENT
        if self.active_upload(item_id) is not None:
            return SyncState.UPLOADING
        if item_id in self._uploaded:
            return SyncState.UPLOADED
        return SyncState.INDEXED

    async def aclose(self) -> None:
        self._uploads.clear()
        await self.upload_queue.aclose()

    @staticmethod
    async def _discard_location(task: asyncio.Task[LocationFix | None] | None) -> None:
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    def _publish(self, index: MediaIndex) -> None:
        for subscriber in list(self._subscribers):
            try:
                subscriber(index)
            except Exception:
                self.log.exception("sync.subscriber.failed")
