from __future__ import annotations

from typing import List, Optional

from dndtracker.core.engine.state import (
    CombatantState,
    EncounterState,
    Entry,
    Phase,
)


def initiative_order(state: EncounterState) -> List[Entry]:
    """
    Порядок ходов: сначала combatants, потом env-ходы (оба в порядке добавления),
    стабильная сортировка по initiative desc. Никогда не кэшируем.
    """
    entries: List[Entry] = [*state.combatants.values(), *state.env_turns.values()]
    return sorted(entries, key=lambda e: -e.initiative)


def index_of(state: EncounterState, entry_id: str) -> int:
    for i, e in enumerate(initiative_order(state)):
        if e.id == entry_id:
            return i
    return -1


def current_entry(state: EncounterState) -> Optional[Entry]:
    if not state.combat_started:
        return None
    order = initiative_order(state)
    if not order:
        return None
    return order[state.current_index % len(order)]


def current_combatant(state: EncounterState) -> Optional[CombatantState]:
    entry = current_entry(state)
    return entry if isinstance(entry, CombatantState) else None


def encounter_phase(state: EncounterState) -> Phase:
    return "active" if state.combat_started else "building"
