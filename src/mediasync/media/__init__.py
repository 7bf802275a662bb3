from .file_mover import FileMover
from .media_models import MediaIndex, MediaItem
from .media_store import MediaStore
from .path_resolution import FileUriResolver, LocalServerResolver, PathResolver

__all__ = [
    "FileMover",
    "FileUriResolver",
    "LocalServerResolver",
    "MediaIndex",
    "MediaItem",
    "MediaStore",
    "PathResolver",
]
