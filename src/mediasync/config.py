"""Application configuration builder."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from .db.db_init import init_db

DEFAULT_INDEX_KEY = "my_images"
DEFAULT_UPLOAD_ENDPOINT = "http://localhost/upload.php"


@dataclass(slots=True)
class UploadSettings:
    endpoint: str
    timeout_seconds: float
    retry_attempts: int
    retry_backoff_seconds: float
    max_in_flight: int


@dataclass(slots=True)
class SyncConfig:
    storage_dir: Path
    database_url: str
    engine: Engine
    session_factory: sessionmaker[Session]
    index_key: str
    upload: UploadSettings
    location_timeout_seconds: float
    display_base_url: str | None = None
    orphan_grace_seconds: float = 600.0


def load_config() -> SyncConfig:
    """Load configuration from environment (SQLite by default)."""
    storage_dir = Path(os.getenv("MEDIASYNC_STORAGE_DIR", "media")).resolve()
    storage_dir.mkdir(parents=True, exist_ok=True)

    upload = UploadSettings(
        endpoint=os.getenv("MEDIASYNC_UPLOAD_ENDPOINT", DEFAULT_UPLOAD_ENDPOINT),
        timeout_seconds=float(os.getenv("MEDIASYNC_UPLOAD_TIMEOUT_SECONDS", 30)),
        retry_attempts=max(1, int(os.getenv("MEDIASYNC_UPLOAD_RETRY_ATTEMPTS", 3))),
        retry_backoff_seconds=float(os.getenv("MEDIASYNC_UPLOAD_RETRY_BACKOFF_SECONDS", 1.0)),
        max_in_flight=max(1, int(os.getenv("MEDIASYNC_MAX_IN_FLIGHT_UPLOADS", 4))),
    )

    database_url = os.getenv("MEDIASYNC_DATABASE_URL", "sqlite:///mediasync.db")
    engine = create_engine(database_url, future=True)
    session_factory: sessionmaker[Session] = sessionmaker(bind=engine, expire_on_commit=False)
    init_db(engine)

    return SyncConfig(
        storage_dir=storage_dir,
        database_url=database_url,
        engine=engine,
        session_factory=session_factory,
        index_key=os.getenv("MEDIASYNC_INDEX_KEY", DEFAULT_INDEX_KEY),
        upload=upload,
        location_timeout_seconds=float(os.getenv("MEDIASYNC_LOCATION_TIMEOUT_SECONDS", 10)),
        display_base_url=os.getenv("MEDIASYNC_DISPLAY_BASE_URL") or None,
        orphan_grace_seconds=float(os.getenv("MEDIASYNC_ORPHAN_GRACE_SECONDS", 600)),
    )
