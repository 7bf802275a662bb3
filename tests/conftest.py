from __future__ import annotations

from collections.abc import Awaitable, Callable
from pathlib import Path

import httpx
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from src.mediasync.db.db_init import init_db
from src.mediasync.location.location_tagger import LocationTagger
from src.mediasync.media.file_mover import FileMover
from src.mediasync.media.media_store import MediaStore
from src.mediasync.repositories.kv_repository import SqlKeyValueStore
from src.mediasync.sync.capture import CapturedFile
from src.mediasync.sync.notifications import RecordingNotificationSink
from src.mediasync.sync.sync_core import SyncCore
from src.mediasync.upload.upload_queue import UploadQueue

FIXED_MILLIS = 1_700_000_000_000

Handler = Callable[[httpx.Request], Awaitable[httpx.Response]]


@pytest.fixture
def session_factory():
    engine = create_engine("sqlite:///:memory:", future=True)
    init_db(engine)
    return sessionmaker(bind=engine, expire_on_commit=False)


@pytest.fixture
def kv_store(session_factory) -> SqlKeyValueStore:
    return SqlKeyValueStore(session_factory)


@pytest.fixture
def storage_dir(tmp_path: Path) -> Path:
    return tmp_path / "media"


@pytest.fixture
def file_mover(storage_dir: Path) -> FileMover:
    return FileMover(storage_dir=storage_dir, clock=lambda: FIXED_MILLIS)


@pytest.fixture
def media_store(kv_store, file_mover) -> MediaStore:
    return MediaStore(kv_store=kv_store, file_mover=file_mover)


@pytest.fixture
def camera_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "camera"
    directory.mkdir()
    return directory


@pytest.fixture
def captured(camera_dir: Path) -> CapturedFile:
    (camera_dir / "img123").write_bytes(b"jpeg-bytes")
    return CapturedFile(source_dir=str(camera_dir), source_name="img123")


@pytest.fixture
def notifications() -> RecordingNotificationSink:
    return RecordingNotificationSink()


async def accept_all(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, json={"success": True})


@pytest.fixture
def make_core(media_store, file_mover, notifications):
    """Build a sync core whose uploads go to ``handler`` instead of the network."""

    def factory(
        handler: Handler = accept_all,
        *,
        location_tagger: LocationTagger | None = None,
        **queue_options,
    ) -> SyncCore:
        queue_options.setdefault("retry_backoff_seconds", 0.0)
        upload_queue = UploadQueue(
            endpoint="http://uploads.test/upload.php",
            file_mover=file_mover,
            transport=httpx.MockTransport(handler),
            **queue_options,
        )
        return SyncCore(
            store=media_store,
            file_mover=file_mover,
            upload_queue=upload_queue,
            location_tagger=location_tagger,
            notify=notifications,
        )

    return factory
