"""Key-value persistence used by the media store."""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Protocol

from sqlalchemy.orm import Session

from ..db.db_models import KeyValueModel, utcnow
from ..exceptions import handle_sqlalchemy_errors


class KeyValueStore(Protocol):
    """Crash-consistent string store: readers never observe torn writes."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...


class SqlKeyValueStore:
    """Key-value wrapper backed by the ``kv_store`` table."""

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def get(self, key: str) -> str | None:
        with handle_sqlalchemy_errors(key=key), self._session_factory() as session:
            model = session.get(KeyValueModel, key)
            return model.value if model is not None else None

    def set(self, key: str, value: str) -> None:
        with handle_sqlalchemy_errors(key=key), self._session_factory() as session:
            model = session.get(KeyValueModel, key)
            if model is None:
                model = KeyValueModel(key=key)
            model.value = value
            model.updated_at = utcnow()
            session.add(model)
            session.commit()


class InMemoryKeyValueStore:
    """Process-local store, mostly useful in tests and previews."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value
