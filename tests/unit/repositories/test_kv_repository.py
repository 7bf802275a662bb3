from __future__ import annotations

from datetime import UTC, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from src.mediasync.db.db_init import init_db
from src.mediasync.db.db_models import KeyValueModel, utcnow
from src.mediasync.exceptions import PersistenceError
from src.mediasync.repositories.kv_repository import InMemoryKeyValueStore, SqlKeyValueStore


def test_get_missing_key_returns_none(kv_store) -> None:
    assert kv_store.get("my_images") is None


def test_set_then_get_round_trips_and_overwrites(kv_store) -> None:
    kv_store.set("my_images", '["1.jpg"]')
    kv_store.set("my_images", '["1.jpg", "2.jpg"]')

    assert kv_store.get("my_images") == '["1.jpg", "2.jpg"]'


def test_values_survive_new_store_instances(tmp_path) -> None:
    engine = create_engine(f"sqlite:///{tmp_path / 'kv.db'}", future=True)
    init_db(engine)
    session_factory = sessionmaker(bind=engine, expire_on_commit=False)

    SqlKeyValueStore(session_factory).set("my_images", '["a.jpg"]')

    assert SqlKeyValueStore(session_factory).get("my_images") == '["a.jpg"]'


def test_database_failures_raise_persistence_error() -> None:
    engine = create_engine("sqlite:///:memory:", future=True)
    session_factory = sessionmaker(bind=engine, expire_on_commit=False)
    store = SqlKeyValueStore(session_factory)  # schema never created

    with pytest.raises(PersistenceError):
        store.get("my_images")
    with pytest.raises(PersistenceError):
        store.set("my_images", "[]")


def test_in_memory_store_copies_initial_data() -> None:
    initial = {"my_images": "[]"}
    store = InMemoryKeyValueStore(initial)
    store.set("my_images", '["x.jpg"]')

    assert store.get("my_images") == '["x.jpg"]'
    assert initial == {"my_images": "[]"}


def test_set_stamps_update_time_in_utc(kv_store, session_factory) -> None:
    before = utcnow()
    kv_store.set("my_images", "[]")

    with session_factory() as session:
        stamped = session.get(KeyValueModel, "my_images").updated_at

    assert before.tzinfo is UTC
    # SQLite drops the offset on read; the stored wall clock is still UTC.
    assert abs(stamped.replace(tzinfo=UTC) - before) < timedelta(minutes=1)
