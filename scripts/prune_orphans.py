"""Cron entry point for deleting stored files the media index no longer references."""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass

from src.mediasync.config import load_config
from src.mediasync.container import build_media_store
from src.mediasync.logging import configure_logging
from src.mediasync.media.media_cleanup import find_orphans, prune_orphans


@dataclass(slots=True)
class PruneSummary:
    orphans: int
    removed: int
    dry_run: bool


def perform_prune(*, dry_run: bool, grace_seconds: float | None = None) -> PruneSummary:
    """Execute orphan pruning and return summary counters."""
    config = load_config()
    store, file_mover = build_media_store(config)
    if grace_seconds is None:
        grace_seconds = config.orphan_grace_seconds

    orphans = find_orphans(store, file_mover, grace_seconds=grace_seconds)
    if dry_run:
        return PruneSummary(orphans=len(orphans), removed=0, dry_run=True)

    removed = prune_orphans(store, file_mover, grace_seconds=grace_seconds)
    return PruneSummary(orphans=len(orphans), removed=removed, dry_run=False)


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Delete media files missing from the index.")
    parser.add_argument("--dry-run", action="store_true", help="Only report counts without deleting files.")
    parser.add_argument(
        "--grace-seconds",
        type=float,
        default=None,
        help="Skip files modified more recently than this (defaults to MEDIASYNC_ORPHAN_GRACE_SECONDS).",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv or [])
    configure_logging()
    try:
        summary = perform_prune(dry_run=args.dry_run, grace_seconds=args.grace_seconds)
    except Exception as exc:
        print(f"prune failed: {exc}", file=sys.stderr)
        return 2

    if summary.dry_run:
        print(f"prune dry-run, orphans={summary.orphans}", file=sys.stdout)
    else:
        print(f"prune done, orphans={summary.orphans}, removed={summary.removed}", file=sys.stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
