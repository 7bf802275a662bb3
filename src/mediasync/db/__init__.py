"""Database models and schema helpers for the key-value layer."""

from .db_init import init_db
from .db_models import Base, KeyValueModel

__all__ = ["Base", "KeyValueModel", "init_db"]
