from __future__ import annotations

import logging
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from dndtracker.core.engine.ids import DEFAULT_IDS
from dndtracker.core.engine.inputs import parse_int
from dndtracker.core.errors import CommandRejectedError
from dndtracker.core.persistence.kv_store import KeyValueStore, save_best_effort

logger = logging.getLogger(__name__)

LIBRARY_KEY = "dnd_npc_library"


class NpcTemplate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    hp_max: int = Field(ge=1)
    # AC/CR только для показа: "15", "1/4", "—"
    ac: str = "—"
    cr: str = "—"

    @field_validator("ac", "cr", mode="before")
    @classmethod
    def as_text(cls, v):
        return "—" if v is None or v == "" else str(v)


def _tpl(id_: str, name: str, hp: int, ac: int, cr: str) -> NpcTemplate:
    return NpcTemplate(id=id_, name=name, hp_max=hp, ac=str(ac), cr=cr)


DEFAULT_NPC_LIBRARY: List[NpcTemplate] = [
    _tpl("npc_goblin", "Goblin", 7, 15, "1/4"),
    _tpl("npc_skeleton", "Skeleton", 13, 13, "1/4"),
    _tpl("npc_zombie", "Zombie", 22, 8, "1/4"),
    _tpl("npc_orc", "Orc", 15, 13, "1/2"),
    _tpl("npc_wolf", "Wolf", 11, 13, "1/4"),
    _tpl("npc_bandit", "Bandit", 11, 12, "1/8"),
    _tpl("npc_cultist", "Cultist", 9, 12, "1/8"),
    _tpl("npc_guard", "Guard", 11, 16, "1/8"),
    _tpl("npc_hobgoblin", "Hobgoblin", 11, 18, "1/2"),
    _tpl("npc_bugbear", "Bugbear", 27, 16, "1"),
    _tpl("npc_gnoll", "Gnoll", 22, 15, "1/2"),
    _tpl("npc_kobold", "Kobold", 5, 12, "1/8"),
    _tpl("npc_troll", "Troll", 84, 15, "5"),
    _tpl("npc_ogre", "Ogre", 59, 11, "2"),
    _tpl("npc_banshee", "Banshee", 58, 12, "4"),
    _tpl("npc_vampire", "Vampire", 144, 16, "13"),
    _tpl("npc_dragon_young", "Young Red Dragon", 178, 18, "17"),
    _tpl("npc_imp", "Imp", 10, 13, "1"),
    _tpl("npc_merrow", "Merrow", 45, 13, "2"),
    _tpl("npc_worg", "Worg", 26, 13, "1/2"),
]

_LIST_ADAPTER = TypeAdapter(List[NpcTemplate])


class TemplateLibrary:
    """
    Библиотека шаблонов NPC. Читается из хранилища один раз,
    пишется целиком после каждого изменения (best effort).
    """

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store
        self._items = self._load()

    def _load(self) -> List[NpcTemplate]:
        raw = self._store.load(LIBRARY_KEY)
        if raw is None:
            return [t.model_copy() for t in DEFAULT_NPC_LIBRARY]
        try:
            return _LIST_ADAPTER.validate_python(raw)
        except ValidationError:
            logger.warning("stored NPC library is unreadable, using defaults")
            return [t.model_copy() for t in DEFAULT_NPC_LIBRARY]

    def _save(self) -> None:
        save_best_effort(self._store, LIBRARY_KEY, [t.model_dump() for t in self._items])

    def list(self) -> List[NpcTemplate]:
        return list(self._items)

    def get(self, template_id: str) -> Optional[NpcTemplate]:
        return next((t for t in self._items if t.id == template_id), None)

    def add(
        self,
        name: str,
        hp_max: Union[int, str, None],
        ac: Union[int, str, None] = None,
        cr: Union[str, None] = None,
    ) -> NpcTemplate:
        if not name or not name.strip():
            raise CommandRejectedError("InvalidInput", "NAME_REQUIRED", "Name required")
        hp = parse_int(hp_max)
        if hp is None or hp < 1:
            raise CommandRejectedError(
                "InvalidInput", "INVALID_HP", "Valid HP required", {"hp_max": hp_max}
            )

        tpl = NpcTemplate(
            id=f"npc_{DEFAULT_IDS.next()}", name=name.strip(), hp_max=hp, ac=ac, cr=cr
        )
        self._items.append(tpl)
        self._save()
        logger.info("template added id=%s name=%s", tpl.id, tpl.name)
        return tpl

    def remove(self, template_id: str) -> bool:
        before = len(self._items)
        self._items = [t for t in self._items if t.id != template_id]
        if len(self._items) == before:
            return False
        self._save()
        return True

    def reset_to_defaults(self) -> List[NpcTemplate]:
        self._items = [t.model_copy() for t in DEFAULT_NPC_LIBRARY]
        self._save()
        return self.list()
