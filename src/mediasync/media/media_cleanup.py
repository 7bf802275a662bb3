"""Helpers for pruning files no index entry references."""

from __future__ import annotations

import logging
import time
from pathlib import Path

from ..exceptions import DeleteError
from .file_mover import FileMover
from .media_store import MediaStore

logger = logging.getLogger(__name__)

# A capture writes its file before it appends the id, so young files may still
# be on their way into the index.
DEFAULT_GRACE_SECONDS = 600.0


def find_orphans(
    store: MediaStore,
    file_mover: FileMover,
    *,
    grace_seconds: float = DEFAULT_GRACE_SECONDS,
    now: float | None = None,
) -> list[Path]:
    """Return managed files absent from the persisted index and older than ``grace_seconds``."""
    cutoff = (time.time() if now is None else now) - grace_seconds
    indexed = set(store.persisted_ids())
    orphans: list[Path] = []
    for path in file_mover.list_files():
        if path.name in indexed:
            continue
        try:
            modified = path.stat().st_mtime
        except FileNotFoundError:
            continue
        if modified > cutoff:
            logger.debug("media.cleanup.too_young", extra={"path": str(path)})
            continue
        orphans.append(path)
    return orphans


def prune_orphans(
    store: MediaStore,
    file_mover: FileMover,
    *,
    grace_seconds: float = DEFAULT_GRACE_SECONDS,
    now: float | None = None,
) -> int:
    """Delete orphaned files left behind by failed deletes; return the count removed."""
    removed = 0
    for path in find_orphans(store, file_mover, grace_seconds=grace_seconds, now=now):
        if path.name in store.persisted_ids():
            logger.info("media.cleanup.indexed_meanwhile", extra={"path": str(path)})
            continue
        try:
            file_mover.delete(path)
        except DeleteError as exc:
            logger.warning("media.cleanup.delete_failed", extra={"path": str(path), "error": str(exc)})
            continue
        removed += 1
        logger.info("media.cleanup.removed", extra={"path": str(path)})
    return removed
