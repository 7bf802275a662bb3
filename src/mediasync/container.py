"""Service composition helpers."""

from __future__ import annotations

import httpx

from .config import SyncConfig
from .location.location_tagger import LocationProvider, LocationTagger
from .media.file_mover import FileMover
from .media.media_store import MediaStore
from .media.path_resolution import FileUriResolver, LocalServerResolver, PathResolver
from .repositories.kv_repository import KeyValueStore, SqlKeyValueStore
from .sync.notifications import LoggingNotificationSink, NotificationSink
from .sync.sync_core import SyncCore
from .upload.upload_queue import UploadQueue


def build_resolver(config: SyncConfig) -> PathResolver:
    if config.display_base_url:
        return LocalServerResolver(base_url=config.display_base_url)
    return FileUriResolver()


def build_media_store(
    config: SyncConfig, *, kv_store: KeyValueStore | None = None
) -> tuple[MediaStore, FileMover]:
    file_mover = FileMover(storage_dir=config.storage_dir, resolver=build_resolver(config))
    store = MediaStore(
        kv_store=kv_store or SqlKeyValueStore(config.session_factory),
        file_mover=file_mover,
        index_key=config.index_key,
    )
    return store, file_mover


def build_sync_core(
    config: SyncConfig,
    *,
    location_provider: LocationProvider | None = None,
    notify: NotificationSink | None = None,
    kv_store: KeyValueStore | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> SyncCore:
    """Wire the sync core from configuration; the index is not loaded yet."""
    store, file_mover = build_media_store(config, kv_store=kv_store)
    upload_queue = UploadQueue(
        endpoint=config.upload.endpoint,
        file_mover=file_mover,
        timeout_seconds=config.upload.timeout_seconds,
        retry_attempts=config.upload.retry_attempts,
        retry_backoff_seconds=config.upload.retry_backoff_seconds,
        max_in_flight=config.upload.max_in_flight,
        transport=transport,
    )
    tagger = (
        LocationTagger(provider=location_provider, timeout_seconds=config.location_timeout_seconds)
        if location_provider is not None
        else None
    )
    return SyncCore(
        store=store,
        file_mover=file_mover,
        upload_queue=upload_queue,
        location_tagger=tagger,
        notify=notify or LoggingNotificationSink(),
    )
