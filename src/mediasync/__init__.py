"""Local-first media capture and synchronization core.

The package keeps a durable index of captured media consistent with the
managed storage directory and pushes items to a remote endpoint. Camera
access, permission prompts and presentation live outside; they hand files
and location fixes in and receive index snapshots and status messages back.
"""

from .container import build_sync_core
from .sync.sync_core import SyncCore, SyncState

__all__ = ["SyncCore", "SyncState", "build_sync_core"]
