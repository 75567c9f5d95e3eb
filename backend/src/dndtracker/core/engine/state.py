from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Literal, Optional, Union

from dndtracker.core.engine.ids import DEFAULT_IDS, IdGenerator

CombatantKind = Literal["player", "npc"]
Phase = Literal["building", "active"]


@dataclass
class CombatantState:
    id: str
    name: str
    hp_max: int
    hp_current: int
    initiative: int
    kind: CombatantKind = "player"

    # порядок добавления сохраняем для отображения
    conditions: List[str] = field(default_factory=list)

    # нужен только для посева флага у тех, кто добавлен посреди раунда
    took_turn_this_round: bool = False

    template_id: Optional[str] = None

    @property
    def is_down(self) -> bool:
        return self.hp_current <= 0


@dataclass
class EnvironmentTurnState:
    id: str
    name: str
    initiative: int
    description: str = ""


Entry = Union[CombatantState, EnvironmentTurnState]


@dataclass
class PendingEdits:
    """Правки активной записи, ещё не зафиксированные CommitTurn."""

    entry_id: Optional[str] = None
    damage: int = 0
    heal: int = 0
    conditions: List[str] = field(default_factory=list)

    def clear(self) -> None:
        self.entry_id = None
        self.damage = 0
        self.heal = 0
        self.conditions = []

    def is_empty(self) -> bool:
        return self.damage == 0 and self.heal == 0 and not self.conditions


@dataclass
class TargetingSession:
    source_id: str
    targets: List[str] = field(default_factory=list)
    amount: Optional[int] = None
    conditions: List[str] = field(default_factory=list)


@dataclass
class EncounterState:
    round: int = 1
    current_index: int = 0
    combat_started: bool = False

    combatants: Dict[str, CombatantState] = field(default_factory=dict)
    env_turns: Dict[str, EnvironmentTurnState] = field(default_factory=dict)

    pending: PendingEdits = field(default_factory=PendingEdits)
    targeting: Optional[TargetingSession] = None

    seq: int = 0
    t: int = 0

    ids: IdGenerator = field(default=DEFAULT_IDS, repr=False, compare=False)

    def new_entry_id(self) -> str:
        return self.ids.next()

    def get_entry(self, entry_id: str) -> Optional[Entry]:
        if entry_id in self.combatants:
            return self.combatants[entry_id]
        return self.env_turns.get(entry_id)

    def entry_count(self) -> int:
        return len(self.combatants) + len(self.env_turns)


def clamp(value: int, lo: int, hi: int) -> int:
    return max(lo, min(hi, value))


def set_hp(c: CombatantState, value: int) -> int:
    c.hp_current = clamp(value, 0, c.hp_max)
    return c.hp_current


def toggle(items: List[str], name: str) -> bool:
    """
    Переключатель: было -> убрали, не было -> добавили.
    Возвращает True, если после вызова элемент присутствует.
    """
    if name in items:
        items.remove(name)
        return False
    items.append(name)
    return True
