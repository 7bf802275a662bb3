"""Managed storage for captured media files."""

from __future__ import annotations

import logging
import shutil
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from ..exceptions import CopyError, DeleteError, FileReadError, InvalidItemIdError
from .media_models import is_bare_item_id
from .path_resolution import FileUriResolver, PathResolver

logger = logging.getLogger(__name__)

MEDIA_SUFFIX = ".jpg"


def _epoch_millis() -> int:
    return time.time_ns() // 1_000_000


@dataclass(slots=True)
class FileMover:
    """Copies captured files into the storage directory under generated ids.

    Every identifier handed out by :meth:`materialize` names a complete file
    on disk; the media store is only written after this returns.
    """

    storage_dir: Path
    resolver: PathResolver = field(default_factory=FileUriResolver)
    clock: Callable[[], int] = _epoch_millis
    log: logging.Logger = field(default_factory=lambda: logger)
    _name_lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def stored_path(self, item_id: str) -> Path:
        if not is_bare_item_id(item_id):
            raise InvalidItemIdError(f"'{item_id}' does not name a file in managed storage")
        return self.storage_dir / item_id

    def materialize(self, source_dir: str | Path, source_name: str) -> str:
        source = Path(source_dir) / source_name
        try:
            self.storage_dir.mkdir(parents=True, exist_ok=True)
            with source.open("rb") as reader:
                item_id, target = self._reserve_target()
                try:
                    with target.open("wb") as sink:
                        shutil.copyfileobj(reader, sink)
                except OSError:
                    target.unlink(missing_ok=True)
                    raise
        except OSError as exc:
            self.log.warning(
                "media.file.copy_failed",
                extra={"source": str(source), "error": str(exc)},
            )
            raise CopyError(f"cannot copy '{source}' into managed storage: {exc}") from exc

        self.log.info(
            "media.file.materialized",
            extra={"item_id": item_id, "source": str(source), "path": str(target)},
        )
        return item_id

    def resolve_display_path(self, stored_path: str | Path | None) -> str:
        if not stored_path:
            return ""
        return self.resolver.resolve(Path(stored_path))

    def read_bytes(self, stored_path: Path) -> bytes:
        try:
            return stored_path.read_bytes()
        except OSError as exc:
            raise FileReadError(f"cannot read '{stored_path}': {exc}") from exc

    def delete(self, stored_path: Path) -> None:
        try:
            stored_path.unlink()
        except OSError as exc:
            raise DeleteError(f"cannot delete '{stored_path}': {exc}") from exc
        self.log.info("media.file.deleted", extra={"path": str(stored_path)})

    def list_files(self) -> list[Path]:
        if not self.storage_dir.is_dir():
            return []
        return sorted(path for path in self.storage_dir.iterdir() if path.is_file())

    def _reserve_target(self) -> tuple[str, Path]:
        """Create an empty destination under a fresh ``<millis>.jpg`` name."""
        with self._name_lock:
            millis = self.clock()
            while True:
                item_id = f"{millis}{MEDIA_SUFFIX}"
                target = self.stored_path(item_id)
                try:
                    target.open("xb").close()
                except FileExistsError:
                    millis += 1
                    continue
                return item_id, target
