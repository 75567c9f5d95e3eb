from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional, Sequence, Tuple

from dndtracker.core.engine.commands import (
    AddCombatant,
    AddEnvironmentTurn,
    AddFromTemplate,
    ApplyHpDelta,
    ApplyTargetedConditions,
    ApplyTargetedDamage,
    ApplyTargetedHeal,
    ClearRoster,
    CloseTargeting,
    Command,
    CommitTurn,
    EndCombat,
    OpenTargeting,
    PrevTurn,
    QuickDamage,
    QuickHeal,
    RemoveEntry,
    SetPendingDamage,
    SetPendingHeal,
    SetTargetAmount,
    StartCombat,
    ToggleStagedCondition,
    ToggleTarget,
    ToggleTargetCondition,
)
from dndtracker.core.engine.events import (
    EventEnvelope,
    ev_combat_ended,
    ev_combat_started,
    ev_combatant_added,
    ev_command_rejected,
    ev_condition_toggled,
    ev_entry_removed,
    ev_environment_turn_added,
    ev_hp_changed,
    ev_pending_discarded,
    ev_pending_updated,
    ev_roster_cleared,
    ev_round_started,
    ev_targeted_effect_applied,
    ev_targeting_closed,
    ev_targeting_updated,
    ev_turn_changed,
    ev_turn_committed,
)
from dndtracker.core.engine.inputs import parse_int
from dndtracker.core.engine.order import (
    current_combatant,
    current_entry,
    index_of,
    initiative_order,
)
from dndtracker.core.engine.rules.validator import find_template, validate_command
from dndtracker.core.engine.state import (
    CombatantState,
    EncounterState,
    EnvironmentTurnState,
    TargetingSession,
    set_hp,
    toggle,
)
from dndtracker.core.library.templates import NpcTemplate

logger = logging.getLogger(__name__)


def _bump(state: EncounterState) -> Tuple[int, int]:
    state.seq += 1
    state.t += 1
    return state.seq, state.t


def _peek(state: EncounterState) -> Tuple[int, int]:
    # номер для события отказа: счётчики состояния не трогаем
    return state.seq + 1, state.t + 1


def _emit(
    state: EncounterState,
    events: List[dict],
    factory: Callable[..., EventEnvelope],
    **kwargs: Any,
) -> None:
    seq, t = _bump(state)
    events.append(factory(seq=seq, t=t, round_=state.round, **kwargs).model_dump(mode="json"))


def _active_id(state: EncounterState) -> Optional[str]:
    entry = current_entry(state)
    return entry.id if entry is not None else None


def _entry_dict(entry: Any) -> dict:
    out = dict(vars(entry))
    if isinstance(entry, CombatantState):
        out["conditions"] = list(entry.conditions)
    return out


def _seed_took_turn(state: EncounterState, initiative: int) -> bool:
    """
    Добавленный посреди раунда и с инициативой не ниже текущего актёра
    считается уже походившим в этом раунде.
    """
    if not state.combat_started:
        return False
    active = current_entry(state)
    active_init = active.initiative if active is not None else 0
    return initiative >= active_init


def _reanchor(state: EncounterState, active_id: Optional[str]) -> None:
    # после вставки в порядок активной остаётся та же запись
    if not state.combat_started or active_id is None:
        return
    idx = index_of(state, active_id)
    if idx >= 0:
        state.current_index = idx


def _discard_pending(state: EncounterState, events: List[dict]) -> None:
    p = state.pending
    if not p.is_empty():
        _emit(
            state,
            events,
            ev_pending_discarded,
            active_entry_id=_active_id(state),
            entry_id=p.entry_id,
            damage=p.damage,
            heal=p.heal,
            conditions=list(p.conditions),
        )
    p.clear()


def _reset_turn_flags(state: EncounterState) -> None:
    for c in state.combatants.values():
        c.took_turn_this_round = False


def _change_hp(
    state: EncounterState,
    events: List[dict],
    c: CombatantState,
    new_value: int,
    reason: str,
) -> None:
    before = c.hp_current
    after = set_hp(c, new_value)
    if after != before:
        _emit(
            state,
            events,
            ev_hp_changed,
            active_entry_id=_active_id(state),
            target_id=c.id,
            hp_before=before,
            hp_after=after,
            reason=reason,
        )


def _toggle_conditions(
    state: EncounterState,
    events: List[dict],
    c: CombatantState,
    staged: Sequence[str],
    reason: str,
) -> None:
    for cond in staged:
        present = toggle(c.conditions, cond)
        _emit(
            state,
            events,
            ev_condition_toggled,
            active_entry_id=_active_id(state),
            target_id=c.id,
            condition=cond,
            present=present,
            reason=reason,
        )


def _targeting_snapshot(state: EncounterState, opened: bool = False) -> dict:
    sess = state.targeting
    assert sess is not None
    return dict(
        active_entry_id=_active_id(state),
        source_id=sess.source_id,
        targets=list(sess.targets),
        amount=sess.amount,
        conditions=list(sess.conditions),
        opened=opened,
    )


def _close_targeting(state: EncounterState, events: List[dict], reason: str) -> None:
    sess = state.targeting
    if sess is None:
        return
    state.targeting = None
    _emit(
        state,
        events,
        ev_targeting_closed,
        active_entry_id=_active_id(state),
        source_id=sess.source_id,
        reason=reason,
    )


def _add_combatant(
    state: EncounterState,
    events: List[dict],
    *,
    name: str,
    hp: int,
    initiative: int,
    kind: str,
    template_id: Optional[str] = None,
) -> CombatantState:
    active_id = _active_id(state)
    c = CombatantState(
        id=state.new_entry_id(),
        name=name,
        hp_max=hp,
        hp_current=hp,
        initiative=initiative,
        kind=kind,  # type: ignore[arg-type]
        took_turn_this_round=_seed_took_turn(state, initiative),
        template_id=template_id,
    )
    state.combatants[c.id] = c
    _reanchor(state, active_id)
    _emit(
        state,
        events,
        ev_combatant_added,
        active_entry_id=_active_id(state),
        combatant=_entry_dict(c),
        template_id=template_id,
    )
    return c


def template_instance_name(state: EncounterState, tpl: NpcTemplate) -> str:
    # "Goblin", "Goblin 2", "Goblin 3", ...
    count = sum(1 for c in state.combatants.values() if c.name.startswith(tpl.name))
    return tpl.name if count == 0 else f"{tpl.name} {count + 1}"


def apply_command(
    state: EncounterState,
    cmd: Command,
    *,
    templates: Optional[Sequence[NpcTemplate]] = None,
) -> Tuple[EncounterState, List[dict]]:
    """
    Возвращаем (state, events_as_dicts).
    При ошибке валидации возвращаем CommandRejected и НЕ меняем state.
    """
    vr = validate_command(state, cmd, templates=templates)
    if not vr.ok:
        e = vr.errors[0]
        logger.info("command %s rejected: %s (%s)", cmd.type, e.code, e.message)
        seq, t = _peek(state)
        rej = ev_command_rejected(
            seq=seq,
            t=t,
            round_=state.round,
            active_entry_id=_active_id(state),
            command=cmd.model_dump(mode="json"),
            kind=e.kind,
            code=e.code,
            message=e.message,
            meta=e.meta,
        ).model_dump(mode="json")
        return state, [rej]

    events: List[dict] = []
    logger.debug("apply %s", cmd.type)

    # ---- roster ----

    if isinstance(cmd, AddCombatant):
        _add_combatant(
            state,
            events,
            name=cmd.name.strip(),
            hp=int(parse_int(cmd.max_hp) or 0),
            initiative=int(parse_int(cmd.initiative) or 0),
            kind=cmd.kind,
        )
        return state, events

    if isinstance(cmd, AddFromTemplate):
        tpl = find_template(templates, cmd.template_id)
        assert tpl is not None
        _add_combatant(
            state,
            events,
            name=template_instance_name(state, tpl),
            hp=tpl.hp_max,
            initiative=int(parse_int(cmd.initiative) or 0),
            kind="npc",
            template_id=tpl.id,
        )
        return state, events

    if isinstance(cmd, AddEnvironmentTurn):
        active_id = _active_id(state)
        env = EnvironmentTurnState(
            id=state.new_entry_id(),
            name=cmd.name.strip(),
            initiative=int(parse_int(cmd.initiative) or 0),
            description=cmd.description.strip(),
        )
        state.env_turns[env.id] = env
        _reanchor(state, active_id)
        _emit(
            state,
            events,
            ev_environment_turn_added,
            active_entry_id=_active_id(state),
            env_turn=_entry_dict(env),
        )
        return state, events

    if isinstance(cmd, RemoveEntry):
        order = initiative_order(state)
        idx = next((i for i, e in enumerate(order) if e.id == cmd.entry_id), -1)
        if idx < 0:
            return state, events

        was_active = state.combat_started and idx == state.current_index
        state.combatants.pop(cmd.entry_id, None)
        state.env_turns.pop(cmd.entry_id, None)

        if state.combat_started:
            cur = state.current_index
            # запись до активной: сдвигаем указатель назад;
            # сама активная: индекс тот же, активным становится следующий
            if idx < cur:
                cur -= 1
            remaining = len(order) - 1
            state.current_index = cur % remaining if remaining > 0 else 0
            if was_active:
                _discard_pending(state, events)

        sess = state.targeting
        if sess is not None:
            if sess.source_id == cmd.entry_id:
                _close_targeting(state, events, reason="source_removed")
            elif cmd.entry_id in sess.targets:
                sess.targets.remove(cmd.entry_id)

        _emit(
            state,
            events,
            ev_entry_removed,
            active_entry_id=_active_id(state),
            entry_id=cmd.entry_id,
            index_before=idx,
            current_index=state.current_index,
        )
        return state, events

    if isinstance(cmd, (ApplyHpDelta, QuickDamage, QuickHeal)):
        c = state.combatants.get(cmd.combatant_id)
        if c is None:
            return state, events
        if isinstance(cmd, ApplyHpDelta):
            delta, reason = cmd.delta, "delta"
        elif isinstance(cmd, QuickDamage):
            delta, reason = -cmd.amount, "quick_damage"
        else:
            delta, reason = cmd.amount, "quick_heal"
        _change_hp(state, events, c, c.hp_current + delta, reason)
        return state, events

    if isinstance(cmd, ClearRoster):
        removed = [*state.combatants.keys(), *state.env_turns.keys()]
        state.combatants.clear()
        state.env_turns.clear()
        state.current_index = 0
        state.pending.clear()
        state.targeting = None
        _emit(state, events, ev_roster_cleared, removed_ids=removed)
        return state, events

    # ---- turn cursor ----

    if isinstance(cmd, StartCombat):
        state.combat_started = True
        state.current_index = 0
        state.round = 1
        state.pending.clear()
        _reset_turn_flags(state)

        order = initiative_order(state)
        _emit(
            state,
            events,
            ev_combat_started,
            active_entry_id=order[0].id,
            order=[{"entry_id": e.id, "initiative": e.initiative} for e in order],
        )
        _emit(state, events, ev_round_started, active_entry_id=order[0].id)
        logger.info("combat started with %d entries", len(order))
        return state, events

    if isinstance(cmd, CommitTurn):
        order = initiative_order(state)
        total = len(order)
        idx = state.current_index % total
        entry = order[idx]

        if isinstance(entry, CombatantState):
            p = state.pending
            if p.entry_id in (None, entry.id):
                _change_hp(
                    state,
                    events,
                    entry,
                    entry.hp_current - p.damage + p.heal,
                    reason="turn_commit",
                )
                _toggle_conditions(state, events, entry, list(p.conditions), "turn_commit")
            entry.took_turn_this_round = True

        _emit(
            state,
            events,
            ev_turn_committed,
            entry_id=entry.id,
            entry_kind="combatant" if isinstance(entry, CombatantState) else "environment",
        )
        state.pending.clear()

        wrapped = idx + 1 >= total
        if wrapped:
            state.round += 1
            _reset_turn_flags(state)
        state.current_index = (idx + 1) % total

        _emit(
            state,
            events,
            ev_turn_changed,
            active_entry_id=_active_id(state),
            current_index=state.current_index,
            direction="next",
        )
        if wrapped:
            _emit(state, events, ev_round_started, active_entry_id=_active_id(state))
            logger.info("round %d started", state.round)
        return state, events

    if isinstance(cmd, PrevTurn):
        total = state.entry_count()
        # несохранённые правки покидаемого хода просто выбрасываем
        _discard_pending(state, events)
        if state.current_index == 0:
            state.round = max(1, state.round - 1)
            state.current_index = total - 1
        else:
            state.current_index -= 1
        _emit(
            state,
            events,
            ev_turn_changed,
            active_entry_id=_active_id(state),
            current_index=state.current_index,
            direction="prev",
        )
        return state, events

    if isinstance(cmd, EndCombat):
        rounds_played = state.round
        state.combat_started = False
        state.combatants.clear()
        state.env_turns.clear()
        state.round = 1
        state.current_index = 0
        state.pending.clear()
        state.targeting = None
        _emit(state, events, ev_combat_ended, rounds_played=rounds_played)
        logger.info("combat ended after %d round(s)", rounds_played)
        return state, events

    # ---- staged edits ----

    if isinstance(cmd, (SetPendingDamage, SetPendingHeal, ToggleStagedCondition)):
        active = current_combatant(state)
        assert active is not None
        p = state.pending
        if p.entry_id != active.id:
            p.clear()
            p.entry_id = active.id

        if isinstance(cmd, SetPendingDamage):
            p.damage = cmd.amount
        elif isinstance(cmd, SetPendingHeal):
            p.heal = cmd.amount
        else:
            toggle(p.conditions, cmd.condition)

        _emit(
            state,
            events,
            ev_pending_updated,
            active_entry_id=active.id,
            damage=p.damage,
            heal=p.heal,
            conditions=list(p.conditions),
        )
        return state, events

    # ---- multi-target ----

    if isinstance(cmd, OpenTargeting):
        # новая сессия отменяет предыдущую
        _close_targeting(state, events, reason="replaced")
        state.targeting = TargetingSession(source_id=cmd.source_id)
        _emit(state, events, ev_targeting_updated, **_targeting_snapshot(state, opened=True))
        return state, events

    if isinstance(cmd, (ToggleTarget, SetTargetAmount, ToggleTargetCondition)):
        sess = state.targeting
        assert sess is not None
        if isinstance(cmd, ToggleTarget):
            toggle(sess.targets, cmd.target_id)
        elif isinstance(cmd, SetTargetAmount):
            sess.amount = cmd.amount
        else:
            toggle(sess.conditions, cmd.condition)
        _emit(state, events, ev_targeting_updated, **_targeting_snapshot(state))
        return state, events

    if isinstance(cmd, (ApplyTargetedDamage, ApplyTargetedHeal, ApplyTargetedConditions)):
        sess = state.targeting
        assert sess is not None
        # валидация уже прошла: дальше меняем всех целей сразу
        targets = [state.combatants[tid] for tid in sess.targets]

        if isinstance(cmd, ApplyTargetedDamage):
            mode, sign = "damage", -1
        elif isinstance(cmd, ApplyTargetedHeal):
            mode, sign = "heal", 1
        else:
            mode, sign = "conditions", 0

        amount = sess.amount if sign else None
        for c in targets:
            if amount is not None:
                _change_hp(state, events, c, c.hp_current + sign * amount, f"targeted_{mode}")
            _toggle_conditions(state, events, c, list(sess.conditions), f"targeted_{mode}")

        _emit(
            state,
            events,
            ev_targeted_effect_applied,
            active_entry_id=_active_id(state),
            source_id=sess.source_id,
            mode=mode,
            amount=amount,
            target_ids=[c.id for c in targets],
            conditions=list(sess.conditions),
        )
        _close_targeting(state, events, reason="applied")
        return state, events

    if isinstance(cmd, CloseTargeting):
        _close_targeting(state, events, reason="cancelled")
        return state, events

    seq, t = _peek(state)
    events.append(
        ev_command_rejected(
            seq=seq,
            t=t,
            round_=state.round,
            active_entry_id=_active_id(state),
            command=cmd.model_dump(mode="json"),
            kind="InvalidInput",
            code="UNKNOWN_COMMAND",
            message="Unhandled command",
            meta={},
        ).model_dump(mode="json")
    )
    return state, events
