from __future__ import annotations

from typing import Any, Literal, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field


class EventEnvelope(BaseModel):
    model_config = ConfigDict(extra="forbid")

    event_id: UUID = Field(default_factory=uuid4)
    seq: int
    t: int
    type: str

    round: int
    active_entry_id: Optional[str] = None
    actor_id: Optional[str] = None

    payload: dict[str, Any] = Field(default_factory=dict)


def ev_command_rejected(
    *,
    seq: int,
    t: int,
    round_: int,
    active_entry_id: Optional[str],
    command: dict,
    kind: str,
    code: str,
    message: str,
    meta: dict,
) -> EventEnvelope:
    return EventEnvelope(
        seq=seq,
        t=t,
        type="CommandRejected",
        round=round_,
        active_entry_id=active_entry_id,
        payload={
            "command": command,
            "kind": kind,
            "code": code,
            "message": message,
            "meta": meta,
        },
    )


# ---- roster ----


def ev_combatant_added(
    *,
    seq: int,
    t: int,
    round_: int,
    active_entry_id: Optional[str],
    combatant: dict,
    template_id: Optional[str] = None,
) -> EventEnvelope:
    return EventEnvelope(
        seq=seq,
        t=t,
        type="CombatantAdded",
        round=round_,
        active_entry_id=active_entry_id,
        actor_id=combatant.get("id"),
        payload={"combatant": combatant, "template_id": template_id},
    )


def ev_environment_turn_added(
    *,
    seq: int,
    t: int,
    round_: int,
    active_entry_id: Optional[str],
    env_turn: dict,
) -> EventEnvelope:
    return EventEnvelope(
        seq=seq,
        t=t,
        type="EnvironmentTurnAdded",
        round=round_,
        active_entry_id=active_entry_id,
        actor_id=env_turn.get("id"),
        payload={"env_turn": env_turn},
    )


def ev_entry_removed(
    *,
    seq: int,
    t: int,
    round_: int,
    active_entry_id: Optional[str],
    entry_id: str,
    index_before: int,
    current_index: int,
) -> EventEnvelope:
    return EventEnvelope(
        seq=seq,
        t=t,
        type="EntryRemoved",
        round=round_,
        active_entry_id=active_entry_id,
        actor_id=entry_id,
        payload={
            "entry_id": entry_id,
            "index_before": index_before,
            "current_index": current_index,
        },
    )


def ev_roster_cleared(
    *, seq: int, t: int, round_: int, removed_ids: list[str]
) -> EventEnvelope:
    return EventEnvelope(
        seq=seq,
        t=t,
        type="RosterCleared",
        round=round_,
        payload={"removed_ids": removed_ids},
    )


def ev_hp_changed(
    *,
    seq: int,
    t: int,
    round_: int,
    active_entry_id: Optional[str],
    target_id: str,
    hp_before: int,
    hp_after: int,
    reason: str,
) -> EventEnvelope:
    return EventEnvelope(
        seq=seq,
        t=t,
        type="HpChanged",
        round=round_,
        active_entry_id=active_entry_id,
        actor_id=target_id,
        payload={
            "target_id": target_id,
            "hp_before": hp_before,
            "hp_after": hp_after,
            "reason": reason,
        },
    )


def ev_condition_toggled(
    *,
    seq: int,
    t: int,
    round_: int,
    active_entry_id: Optional[str],
    target_id: str,
    condition: str,
    present: bool,
    reason: str,
) -> EventEnvelope:
    return EventEnvelope(
        seq=seq,
        t=t,
        type="ConditionApplied" if present else "ConditionRemoved",
        round=round_,
        active_entry_id=active_entry_id,
        actor_id=target_id,
        payload={"target_id": target_id, "condition": condition, "reason": reason},
    )


# ---- turn cursor ----


def ev_combat_started(
    *, seq: int, t: int, round_: int, active_entry_id: Optional[str], order: list[dict]
) -> EventEnvelope:
    # order: [{"entry_id": "c_1", "initiative": 18}, ...]
    return EventEnvelope(
        seq=seq,
        t=t,
        type="CombatStarted",
        round=round_,
        active_entry_id=active_entry_id,
        payload={"order": order},
    )


def ev_turn_committed(
    *, seq: int, t: int, round_: int, entry_id: str, entry_kind: str
) -> EventEnvelope:
    return EventEnvelope(
        seq=seq,
        t=t,
        type="TurnCommitted",
        round=round_,
        active_entry_id=entry_id,
        actor_id=entry_id,
        payload={"entry_id": entry_id, "entry_kind": entry_kind},
    )


def ev_round_started(
    *, seq: int, t: int, round_: int, active_entry_id: Optional[str]
) -> EventEnvelope:
    return EventEnvelope(
        seq=seq,
        t=t,
        type="RoundStarted",
        round=round_,
        active_entry_id=active_entry_id,
        payload={"round": round_},
    )


def ev_turn_changed(
    *,
    seq: int,
    t: int,
    round_: int,
    active_entry_id: Optional[str],
    current_index: int,
    direction: Literal["next", "prev"],
) -> EventEnvelope:
    return EventEnvelope(
        seq=seq,
        t=t,
        type="TurnChanged",
        round=round_,
        active_entry_id=active_entry_id,
        payload={"current_index": current_index, "direction": direction},
    )


def ev_pending_discarded(
    *,
    seq: int,
    t: int,
    round_: int,
    active_entry_id: Optional[str],
    entry_id: Optional[str],
    damage: int,
    heal: int,
    conditions: list[str],
) -> EventEnvelope:
    return EventEnvelope(
        seq=seq,
        t=t,
        type="PendingDiscarded",
        round=round_,
        active_entry_id=active_entry_id,
        actor_id=entry_id,
        payload={"damage": damage, "heal": heal, "conditions": conditions},
    )


def ev_combat_ended(*, seq: int, t: int, round_: int, rounds_played: int) -> EventEnvelope:
    return EventEnvelope(
        seq=seq,
        t=t,
        type="CombatEnded",
        round=round_,
        payload={"rounds_played": rounds_played},
    )


def ev_pending_updated(
    *,
    seq: int,
    t: int,
    round_: int,
    active_entry_id: Optional[str],
    damage: int,
    heal: int,
    conditions: list[str],
) -> EventEnvelope:
    return EventEnvelope(
        seq=seq,
        t=t,
        type="PendingUpdated",
        round=round_,
        active_entry_id=active_entry_id,
        actor_id=active_entry_id,
        payload={"damage": damage, "heal": heal, "conditions": conditions},
    )


# ---- multi-target ----


def ev_targeting_updated(
    *,
    seq: int,
    t: int,
    round_: int,
    active_entry_id: Optional[str],
    source_id: str,
    targets: list[str],
    amount: Optional[int],
    conditions: list[str],
    opened: bool = False,
) -> EventEnvelope:
    return EventEnvelope(
        seq=seq,
        t=t,
        type="TargetingOpened" if opened else "TargetingUpdated",
        round=round_,
        active_entry_id=active_entry_id,
        actor_id=source_id,
        payload={
            "source_id": source_id,
            "targets": targets,
            "amount": amount,
            "conditions": conditions,
        },
    )


def ev_targeting_closed(
    *,
    seq: int,
    t: int,
    round_: int,
    active_entry_id: Optional[str],
    source_id: str,
    reason: str,
) -> EventEnvelope:
    return EventEnvelope(
        seq=seq,
        t=t,
        type="TargetingClosed",
        round=round_,
        active_entry_id=active_entry_id,
        actor_id=source_id,
        payload={"source_id": source_id, "reason": reason},
    )


def ev_targeted_effect_applied(
    *,
    seq: int,
    t: int,
    round_: int,
    active_entry_id: Optional[str],
    source_id: str,
    mode: Literal["damage", "heal", "conditions"],
    amount: Optional[int],
    target_ids: list[str],
    conditions: list[str],
) -> EventEnvelope:
    return EventEnvelope(
        seq=seq,
        t=t,
        type="TargetedEffectApplied",
        round=round_,
        active_entry_id=active_entry_id,
        actor_id=source_id,
        payload={
            "source_id": source_id,
            "mode": mode,
            "amount": amount,
            "target_ids": target_ids,
            "conditions": conditions,
        },
    )
