"""Media data models."""

from dataclasses import dataclass, replace
from pathlib import Path

from ..location.location_tagger import LocationFix


@dataclass(slots=True, frozen=True)
class MediaItem:
    id: str
    stored_path: Path
    display_path: str
    location: LocationFix | None = None

    @property
    def captured_at(self) -> int | None:
        """Millisecond epoch embedded in the identifier, if it has one."""
        stem = Path(self.id).stem
        return int(stem) if stem.isdigit() else None

    def with_location(self, location: LocationFix | None) -> "MediaItem":
        return replace(self, location=location)


# Newest first; rebuilt on every mutation and handed out as a snapshot.
MediaIndex = tuple[MediaItem, ...]


def is_bare_item_id(item_id: str) -> bool:
    """Return ``True`` when ``item_id`` names a file directly inside storage."""
    return bool(item_id) and item_id not in {".", ".."} and Path(item_id).name == item_id
