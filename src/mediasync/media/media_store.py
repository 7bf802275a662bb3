"""Durable index of captured media items."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field

from ..config import DEFAULT_INDEX_KEY
from ..exceptions import ItemNotFoundError, PersistenceError
from ..location.location_tagger import LocationFix
from ..repositories.kv_repository import KeyValueStore
from .file_mover import FileMover
from .media_models import MediaIndex, MediaItem
from .media_schemas import dump_id_list, dump_locations, parse_id_list, parse_locations

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class MediaStore:
    """Single source of truth for which media items exist.

    The identifier list is persisted oldest first under ``index_key``; the
    in-memory index is the same list newest first. Every read-modify-write on
    the persisted list holds ``_lock``.
    """

    kv_store: KeyValueStore
    file_mover: FileMover
    index_key: str = DEFAULT_INDEX_KEY
    log: logging.Logger = field(default_factory=lambda: logger)
    _lock: threading.RLock = field(default_factory=threading.RLock, init=False, repr=False)
    _index: MediaIndex = field(default=(), init=False, repr=False)

    @property
    def locations_key(self) -> str:
        return f"{self.index_key}:locations"

    def load(self) -> MediaIndex:
        with self._lock:
            try:
                ids = self._read_ids()
                locations = self._read_locations()
            except PersistenceError as exc:
                self.log.warning("media.store.load_failed", extra={"error": str(exc)})
                ids, locations = [], {}
            self._index = tuple(
                self._build_item(item_id, locations.get(item_id)) for item_id in reversed(ids)
            )
            self.log.info("media.store.loaded", extra={"count": len(self._index)})
            return self._index

    def append(self, item_id: str) -> MediaIndex:
        with self._lock:
            item = self._build_item(item_id)
            ids = self._read_ids()
            if item_id in ids:
                # Keep the persisted position so the next load() shows the same order.
                self.log.warning("media.store.duplicate_append", extra={"item_id": item_id})
                locations = self._read_locations()
                self._index = tuple(
                    self._build_item(existing, locations.get(existing)) for existing in reversed(ids)
                )
            else:
                ids.append(item_id)
                self.kv_store.set(self.index_key, dump_id_list(ids))
                current = tuple(entry for entry in self._index if entry.id != item_id)
                self._index = (item, *current)
            self.log.info(
                "media.store.appended", extra={"item_id": item_id, "count": len(ids)}
            )
            return self._index

    def remove(self, item_id: str) -> None:
        with self._lock:
            ids = self._read_ids()
            filtered = [existing for existing in ids if existing != item_id]
            self.kv_store.set(self.index_key, dump_id_list(filtered))
            locations = self._read_locations()
            if locations.pop(item_id, None) is not None:
                self.kv_store.set(self.locations_key, dump_locations(locations))
            self._index = tuple(item for item in self._index if item.id != item_id)
            self.log.info(
                "media.store.removed",
                extra={"item_id": item_id, "count": len(filtered), "was_present": len(filtered) != len(ids)},
            )

    def attach_location(self, item_id: str, fix: LocationFix) -> MediaItem:
        with self._lock:
            item = self.get(item_id)
            locations = self._read_locations()
            locations[item_id] = fix
            self.kv_store.set(self.locations_key, dump_locations(locations))
            tagged = item.with_location(fix)
            self._index = tuple(tagged if entry.id == item_id else entry for entry in self._index)
            return tagged

    def get(self, item_id: str) -> MediaItem:
        for item in self._index:
            if item.id == item_id:
                return item
        raise ItemNotFoundError(f"media item '{item_id}' not found")

    def contains(self, item_id: str) -> bool:
        return any(item.id == item_id for item in self._index)

    def snapshot(self) -> MediaIndex:
        return self._index

    def persisted_ids(self) -> list[str]:
        """Return the stored identifier list in arrival order."""
        with self._lock:
            return self._read_ids()

    def _build_item(self, item_id: str, location: LocationFix | None = None) -> MediaItem:
        stored_path = self.file_mover.stored_path(item_id)
        return MediaItem(
            id=item_id,
            stored_path=stored_path,
            display_path=self.file_mover.resolve_display_path(stored_path),
            location=location,
        )

    def _read_ids(self) -> list[str]:
        # Storage failures propagate; only an unreadable value counts as empty.
        raw = self.kv_store.get(self.index_key)
        try:
            return parse_id_list(raw)
        except PersistenceError as exc:
            self.log.warning(
                "media.store.index_unreadable",
                extra={"key": self.index_key, "error": str(exc)},
            )
            return []

    def _read_locations(self) -> dict[str, LocationFix]:
        raw = self.kv_store.get(self.locations_key)
        try:
            return parse_locations(raw)
        except PersistenceError as exc:
            self.log.warning(
                "media.store.locations_unreadable",
                extra={"key": self.locations_key, "error": str(exc)},
            )
            return {}
