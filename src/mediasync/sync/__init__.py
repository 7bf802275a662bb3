from .capture import CapturedFile, CaptureSource
from .notifications import LoggingNotificationSink, NotificationSink, RecordingNotificationSink
from .sync_core import SyncCore, SyncState

__all__ = [
    "CaptureSource",
    "CapturedFile",
    "LoggingNotificationSink",
    "NotificationSink",
    "RecordingNotificationSink",
    "SyncCore",
    "SyncState",
]
