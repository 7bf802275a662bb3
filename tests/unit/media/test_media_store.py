from __future__ import annotations

import random
import threading

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

import pytest

from src.mediasync.db.db_init import init_db
from src.mediasync.exceptions import InvalidItemIdError, ItemNotFoundError
from src.mediasync.location.location_tagger import LocationFix
from src.mediasync.media.media_store import MediaStore
from src.mediasync.repositories.kv_repository import SqlKeyValueStore


def test_load_without_stored_key_is_empty(media_store) -> None:
    assert media_store.load() == ()


def test_load_with_unparsable_value_is_empty(media_store, kv_store) -> None:
    kv_store.set("my_images", "{not json")

    assert media_store.load() == ()


def test_append_persists_list_and_prepends_item(media_store, kv_store, storage_dir) -> None:
    index = media_store.append("1700000000000.jpg")

    assert kv_store.get("my_images") == '["1700000000000.jpg"]'
    assert [item.id for item in index] == ["1700000000000.jpg"]
    item = index[0]
    assert item.stored_path == storage_dir / "1700000000000.jpg"
    assert item.display_path == (storage_dir / "1700000000000.jpg").resolve().as_uri()
    assert item.captured_at == 1_700_000_000_000
    assert item.location is None


def test_load_presents_newest_first_without_resorting(media_store, kv_store) -> None:
    kv_store.set("my_images", '["3.jpg", "1.jpg", "2.jpg"]')

    index = media_store.load()

    assert [item.id for item in index] == ["2.jpg", "1.jpg", "3.jpg"]
    assert media_store.persisted_ids() == ["3.jpg", "1.jpg", "2.jpg"]


def test_append_after_malformed_value_starts_fresh(media_store, kv_store) -> None:
    kv_store.set("my_images", "garbage")

    media_store.append("1.jpg")

    assert kv_store.get("my_images") == '["1.jpg"]'


def test_append_existing_id_does_not_duplicate(media_store) -> None:
    media_store.append("1.jpg")
    index = media_store.append("1.jpg")

    assert media_store.persisted_ids() == ["1.jpg"]
    assert [item.id for item in index] == ["1.jpg"]


def test_duplicate_append_keeps_the_order_load_would_show(media_store) -> None:
    media_store.append("1.jpg")
    media_store.append("2.jpg")

    index = media_store.append("1.jpg")

    assert [item.id for item in index] == ["2.jpg", "1.jpg"]
    assert [item.id for item in media_store.load()] == ["2.jpg", "1.jpg"]


def test_append_rejects_identifier_outside_storage(media_store, kv_store) -> None:
    with pytest.raises(InvalidItemIdError):
        media_store.append("../outside.jpg")

    assert kv_store.get("my_images") is None
    assert media_store.snapshot() == ()


def test_remove_filters_id_and_ignores_unknown(media_store) -> None:
    media_store.append("1.jpg")
    media_store.append("2.jpg")

    media_store.remove("1.jpg")
    media_store.remove("unknown.jpg")

    assert media_store.persisted_ids() == ["2.jpg"]
    assert [item.id for item in media_store.snapshot()] == ["2.jpg"]
    assert not media_store.contains("1.jpg")


def test_get_unknown_id_raises(media_store) -> None:
    with pytest.raises(ItemNotFoundError):
        media_store.get("nope.jpg")


def test_persisted_list_matches_simulated_sequence(media_store) -> None:
    rng = random.Random(20240131)
    pool = [f"{1_700_000_000_000 + n}.jpg" for n in range(12)]
    expected: list[str] = []

    for _ in range(200):
        item_id = rng.choice(pool)
        if rng.random() < 0.6:
            media_store.append(item_id)
            if item_id not in expected:
                expected.append(item_id)
        else:
            media_store.remove(item_id)
            if item_id in expected:
                expected.remove(item_id)

    assert media_store.persisted_ids() == expected
    assert [item.id for item in media_store.snapshot()] == list(reversed(expected))
    assert [item.id for item in media_store.load()] == list(reversed(expected))


def test_location_survives_reload_and_is_dropped_on_remove(media_store, kv_store) -> None:
    fix = LocationFix(latitude=1.5, longitude=2.5, accuracy=8.0, timestamp=1_700_000_000_100)
    media_store.append("1.jpg")

    tagged = media_store.attach_location("1.jpg", fix)

    assert tagged.location == fix
    assert media_store.load()[0].location == fix

    media_store.remove("1.jpg")
    assert kv_store.get("my_images:locations") == "{}"


def test_malformed_locations_do_not_hide_items(media_store, kv_store) -> None:
    kv_store.set("my_images", '["1.jpg"]')
    kv_store.set("my_images:locations", "[]")

    index = media_store.load()

    assert [item.id for item in index] == ["1.jpg"]
    assert index[0].location is None


def test_concurrent_appends_lose_no_updates(tmp_path, file_mover) -> None:
    engine = create_engine(f"sqlite:///{tmp_path / 'index.db'}", future=True)
    init_db(engine)
    store = MediaStore(
        kv_store=SqlKeyValueStore(sessionmaker(bind=engine, expire_on_commit=False)),
        file_mover=file_mover,
    )
    ids = [f"{n}.jpg" for n in range(16)]

    threads = [threading.Thread(target=store.append, args=(item_id,)) for item_id in ids]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    persisted = store.persisted_ids()
    assert sorted(persisted) == sorted(ids)
    assert len(persisted) == len(set(persisted))
