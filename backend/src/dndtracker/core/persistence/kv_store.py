from __future__ import annotations

import copy
import logging
from typing import Any, Callable, Dict, Optional, Protocol

from sqlalchemy.orm import Session

from dndtracker.db.models import KeyValue

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    def load(self, key: str) -> Optional[Any]: ...

    def save(self, key: str, value: Any) -> None: ...


class InMemoryKeyValueStore:
    def __init__(self, initial: Optional[Dict[str, Any]] = None) -> None:
        self._data: Dict[str, Any] = dict(initial or {})

    def load(self, key: str) -> Optional[Any]:
        if key not in self._data:
            return None
        return copy.deepcopy(self._data[key])

    def save(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)


class SqlKeyValueStore:
    """
    Хранилище значений целиком (как localStorage): key -> JSON.
    Каждая операция в своей сессии, чтобы не зависеть от request-сессии.
    """

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def load(self, key: str) -> Optional[Any]:
        with self._session_factory() as db:
            row = db.get(KeyValue, key)
            return None if row is None else row.value_json

    def save(self, key: str, value: Any) -> None:
        with self._session_factory() as db:
            row = db.get(KeyValue, key)
            if row is None:
                db.add(KeyValue(key=key, value_json=value))
            else:
                row.value_json = value
            db.commit()
        logger.debug("kv saved key=%s", key)


def save_best_effort(store: KeyValueStore, key: str, value: Any) -> bool:
    """Запись на диск не должна ломать изменение в памяти."""
    try:
        store.save(key, value)
        return True
    except Exception:
        logger.warning("failed to persist key=%s", key, exc_info=True)
        return False
