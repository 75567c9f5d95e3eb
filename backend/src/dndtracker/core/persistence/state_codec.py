from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from dndtracker.core.engine.ids import DEFAULT_IDS, IdGenerator
from dndtracker.core.engine.state import (
    CombatantState,
    EncounterState,
    EnvironmentTurnState,
    PendingEdits,
    TargetingSession,
)

SCHEMA_VERSION = 1


# ---------- encode ----------


def combatant_to_dict(c: CombatantState) -> Dict[str, Any]:
    return {
        "id": c.id,
        "name": c.name,
        "hp_max": c.hp_max,
        "hp_current": c.hp_current,
        "initiative": c.initiative,
        "kind": c.kind,
        "conditions": list(c.conditions),
        "took_turn_this_round": c.took_turn_this_round,
        "template_id": c.template_id,
    }


def env_turn_to_dict(e: EnvironmentTurnState) -> Dict[str, Any]:
    return {
        "id": e.id,
        "name": e.name,
        "initiative": e.initiative,
        "description": e.description,
    }


def encounter_state_to_dict(state: EncounterState) -> Dict[str, Any]:
    """
    Явная сериализация: генератор id в снапшот не попадает,
    словари сохраняют порядок добавления (от него зависит tie-break).
    """
    p = state.pending
    sess = state.targeting
    return {
        "schema_version": SCHEMA_VERSION,
        "round": state.round,
        "current_index": state.current_index,
        "combat_started": state.combat_started,
        "combatants": {cid: combatant_to_dict(c) for cid, c in state.combatants.items()},
        "env_turns": {eid: env_turn_to_dict(e) for eid, e in state.env_turns.items()},
        "pending": {
            "entry_id": p.entry_id,
            "damage": p.damage,
            "heal": p.heal,
            "conditions": list(p.conditions),
        },
        "targeting": None
        if sess is None
        else {
            "source_id": sess.source_id,
            "targets": list(sess.targets),
            "amount": sess.amount,
            "conditions": list(sess.conditions),
        },
        "seq": state.seq,
        "t": state.t,
    }


# ---------- decode ----------


def _combatant_from_dict(d: Mapping[str, Any]) -> CombatantState:
    return CombatantState(
        id=str(d["id"]),
        name=str(d["name"]),
        hp_max=int(d["hp_max"]),
        hp_current=int(d.get("hp_current", d["hp_max"])),
        initiative=int(d.get("initiative", 0)),
        kind=d.get("kind", "player"),
        conditions=list(d.get("conditions") or []),
        took_turn_this_round=bool(d.get("took_turn_this_round", False)),
        template_id=d.get("template_id"),
    )


def _env_turn_from_dict(d: Mapping[str, Any]) -> EnvironmentTurnState:
    return EnvironmentTurnState(
        id=str(d["id"]),
        name=str(d["name"]),
        initiative=int(d.get("initiative", 0)),
        description=str(d.get("description") or ""),
    )


def encounter_state_from_dict(
    data: Mapping[str, Any], *, ids: Optional[IdGenerator] = None
) -> EncounterState:
    gen = ids if ids is not None else DEFAULT_IDS

    combatants = {
        str(k): _combatant_from_dict(v) for k, v in (data.get("combatants") or {}).items()
    }
    env_turns = {
        str(k): _env_turn_from_dict(v) for k, v in (data.get("env_turns") or {}).items()
    }

    pd = data.get("pending") or {}
    pending = PendingEdits(
        entry_id=pd.get("entry_id"),
        damage=int(pd.get("damage", 0)),
        heal=int(pd.get("heal", 0)),
        conditions=list(pd.get("conditions") or []),
    )

    td = data.get("targeting")
    targeting = None
    if td:
        amount = td.get("amount")
        targeting = TargetingSession(
            source_id=str(td["source_id"]),
            targets=list(td.get("targets") or []),
            amount=None if amount is None else int(amount),
            conditions=list(td.get("conditions") or []),
        )

    # после загрузки новые id не должны совпасть с уже выданными
    gen.advance_past([*combatants.keys(), *env_turns.keys()])

    return EncounterState(
        round=int(data.get("round", 1)),
        current_index=int(data.get("current_index", 0)),
        combat_started=bool(data.get("combat_started", False)),
        combatants=combatants,
        env_turns=env_turns,
        pending=pending,
        targeting=targeting,
        seq=int(data.get("seq", 0)),
        t=int(data.get("t", 0)),
        ids=gen,
    )
