"""Persisted representations of the media index.

The identifier list is stored exactly as a JSON array of strings, oldest
first. ``INDEX_SCHEMA_VERSION`` is reserved for a future envelope format;
version 1 is the bare array. Location metadata lives next to it as a JSON
object keyed by identifier.
"""

from __future__ import annotations

import json

from pydantic import BaseModel, ConfigDict, TypeAdapter, ValidationError

from ..exceptions import PersistenceError
from ..location.location_tagger import LocationFix
from .media_models import is_bare_item_id

INDEX_SCHEMA_VERSION = 1

_ID_LIST = TypeAdapter(list[str])


class StoredLocation(BaseModel):
    model_config = ConfigDict(extra="ignore")

    latitude: float
    longitude: float
    accuracy: float
    timestamp: int

    @classmethod
    def from_fix(cls, fix: LocationFix) -> "StoredLocation":
        return cls(
            latitude=fix.latitude,
            longitude=fix.longitude,
            accuracy=fix.accuracy,
            timestamp=fix.timestamp,
        )

    def to_fix(self) -> LocationFix:
        return LocationFix(
            latitude=self.latitude,
            longitude=self.longitude,
            accuracy=self.accuracy,
            timestamp=self.timestamp,
        )


_LOCATION_MAP = TypeAdapter(dict[str, StoredLocation])


def parse_id_list(raw: str | None) -> list[str]:
    """Decode the stored list, dropping duplicates (first occurrence wins).

    Every identifier must be a bare file name; anything that could resolve
    outside managed storage makes the whole value unreadable.
    """
    if raw is None:
        return []
    try:
        ids = _ID_LIST.validate_json(raw)
    except ValidationError as exc:
        raise PersistenceError(f"stored index is not a list of strings: {exc.error_count()} errors") from exc
    unsafe = [item_id for item_id in ids if not is_bare_item_id(item_id)]
    if unsafe:
        raise PersistenceError(f"stored index holds non-file identifiers: {unsafe!r}")
    return list(dict.fromkeys(ids))


def dump_id_list(ids: list[str]) -> str:
    return json.dumps(ids)


def parse_locations(raw: str | None) -> dict[str, LocationFix]:
    if raw is None:
        return {}
    try:
        stored = _LOCATION_MAP.validate_json(raw)
    except ValidationError as exc:
        raise PersistenceError("stored location map is malformed") from exc
    return {item_id: location.to_fix() for item_id, location in stored.items()}


def dump_locations(locations: dict[str, LocationFix]) -> str:
    payload = {
        item_id: StoredLocation.from_fix(fix).model_dump()
        for item_id, fix in locations.items()
    }
    return json.dumps(payload)
