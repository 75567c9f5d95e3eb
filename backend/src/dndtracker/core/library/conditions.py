from __future__ import annotations

import logging
from typing import List

from dndtracker.core.persistence.kv_store import KeyValueStore, save_best_effort

logger = logging.getLogger(__name__)

CONDITIONS_KEY = "dnd_conditions"

DEFAULT_CONDITIONS: List[str] = [
    "Blinded",
    "Charmed",
    "Deafened",
    "Exhaustion",
    "Frightened",
    "Grappled",
    "Incapacitated",
    "Invisible",
    "Paralyzed",
    "Petrified",
    "Poisoned",
    "Prone",
    "Restrained",
    "Stunned",
    "Unconscious",
    "Concentration",
]


class ConditionVocabulary:
    """Упорядоченный список названий состояний; ядро видит его как list[str]."""

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store
        raw = store.load(CONDITIONS_KEY)
        if isinstance(raw, list) and all(isinstance(c, str) for c in raw):
            self._items: List[str] = list(raw)
        else:
            if raw is not None:
                logger.warning("stored conditions are unreadable, using defaults")
            self._items = list(DEFAULT_CONDITIONS)

    def _save(self) -> None:
        save_best_effort(self._store, CONDITIONS_KEY, list(self._items))

    def list(self) -> List[str]:
        return list(self._items)

    def add(self, name: str) -> bool:
        name = (name or "").strip()
        if not name or name in self._items:
            return False
        self._items.append(name)
        self._save()
        return True

    def remove(self, name: str) -> bool:
        if name not in self._items:
            return False
        self._items.remove(name)
        self._save()
        return True

    def reset_to_defaults(self) -> List[str]:
        self._items = list(DEFAULT_CONDITIONS)
        self._save()
        return self.list()
