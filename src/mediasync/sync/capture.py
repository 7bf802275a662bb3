"""Normalized capture-source interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from urllib.parse import unquote, urlsplit


@dataclass(slots=True, frozen=True)
class CapturedFile:
    """A freshly captured image addressed as directory plus file name."""

    source_dir: str
    source_name: str

    @classmethod
    def from_uri(cls, uri: str) -> "CapturedFile":
        """Split a camera or gallery result into directory and name.

        Gallery pickers may hand back ``file://`` URIs with a cache-busting
        query (``IMG_1.jpg?1700000000``); the query and scheme are dropped.
        """
        parts = urlsplit(uri)
        if parts.scheme in ("file", ""):
            path = unquote(parts.path)
        else:
            path = uri.split("?", 1)[0]
        directory, _, name = path.rpartition("/")
        if not name:
            raise ValueError(f"capture uri '{uri}' does not name a file")
        return cls(source_dir=f"{directory}/", source_name=name)


class CaptureSource(ABC):
    """Platform capability resolving a camera or library pick to a local file."""

    @abstractmethod
    async def acquire(self) -> CapturedFile:
        """Return the captured file; any exception aborts the capture."""
