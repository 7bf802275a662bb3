"""Path resolution capabilities turning stored paths into renderable references."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol
from urllib.parse import quote


class PathResolver(Protocol):
    def resolve(self, path: Path) -> str: ...


class FileUriResolver:
    """Render stored files as ``file://`` URIs."""

    def resolve(self, path: Path) -> str:
        return path.resolve().as_uri()


@dataclass(slots=True)
class LocalServerResolver:
    """Serve stored files through a local HTTP origin.

    Hybrid web views cannot load ``file://`` URLs directly; they expose the
    filesystem under a fixed prefix instead, e.g.
    ``http://localhost/_app_file_/data/media/1.jpg``.
    """

    base_url: str
    prefix: str = "_app_file_"

    def resolve(self, path: Path) -> str:
        base = self.base_url.rstrip("/")
        prefix = self.prefix.strip("/")
        encoded = quote(path.resolve().as_posix())
        return f"{base}/{prefix}{encoded}" if prefix else f"{base}{encoded}"
