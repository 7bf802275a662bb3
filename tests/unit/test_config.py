from __future__ import annotations

from src.mediasync.config import DEFAULT_INDEX_KEY, DEFAULT_UPLOAD_ENDPOINT, load_config
from src.mediasync.container import build_sync_core
from src.mediasync.media.path_resolution import FileUriResolver, LocalServerResolver
from src.mediasync.repositories.kv_repository import SqlKeyValueStore


def _isolate(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("MEDIASYNC_STORAGE_DIR", str(tmp_path / "media"))
    monkeypatch.setenv("MEDIASYNC_DATABASE_URL", f"sqlite:///{tmp_path / 'sync.db'}")
    for name in (
        "MEDIASYNC_INDEX_KEY",
        "MEDIASYNC_UPLOAD_ENDPOINT",
        "MEDIASYNC_UPLOAD_RETRY_ATTEMPTS",
        "MEDIASYNC_MAX_IN_FLIGHT_UPLOADS",
        "MEDIASYNC_DISPLAY_BASE_URL",
        "MEDIASYNC_ORPHAN_GRACE_SECONDS",
    ):
        monkeypatch.delenv(name, raising=False)


def test_load_config_defaults(monkeypatch, tmp_path) -> None:
    _isolate(monkeypatch, tmp_path)

    config = load_config()

    assert config.storage_dir == (tmp_path / "media").resolve()
    assert config.storage_dir.is_dir()
    assert config.index_key == DEFAULT_INDEX_KEY
    assert config.upload.endpoint == DEFAULT_UPLOAD_ENDPOINT
    assert config.upload.retry_attempts == 3
    assert config.upload.max_in_flight == 4
    assert config.display_base_url is None
    assert config.orphan_grace_seconds == 600.0
    SqlKeyValueStore(config.session_factory).set("probe", "ok")


def test_load_config_overrides(monkeypatch, tmp_path) -> None:
    _isolate(monkeypatch, tmp_path)
    monkeypatch.setenv("MEDIASYNC_INDEX_KEY", "photos")
    monkeypatch.setenv("MEDIASYNC_UPLOAD_RETRY_ATTEMPTS", "0")
    monkeypatch.setenv("MEDIASYNC_MAX_IN_FLIGHT_UPLOADS", "2")
    monkeypatch.setenv("MEDIASYNC_DISPLAY_BASE_URL", "http://localhost")

    config = load_config()

    assert config.index_key == "photos"
    assert config.upload.retry_attempts == 1
    assert config.upload.max_in_flight == 2
    assert config.display_base_url == "http://localhost"


def test_build_sync_core_wires_components(monkeypatch, tmp_path) -> None:
    _isolate(monkeypatch, tmp_path)
    config = load_config()

    core = build_sync_core(config)

    assert core.store.index_key == DEFAULT_INDEX_KEY
    assert core.file_mover.storage_dir == config.storage_dir
    assert isinstance(core.file_mover.resolver, FileUriResolver)
    assert core.upload_queue.endpoint == DEFAULT_UPLOAD_ENDPOINT
    assert core.location_tagger is None
    assert core.load() == ()

    monkeypatch.setenv("MEDIASYNC_DISPLAY_BASE_URL", "http://localhost")
    assert isinstance(build_sync_core(load_config()).file_mover.resolver, LocalServerResolver)
