from dndtracker.core.engine.commands import (
    AddCombatant,
    AddEnvironmentTurn,
    CommitTurn,
    SetPendingDamage,
    SetPendingHeal,
    StartCombat,
    ToggleStagedCondition,
)
from dndtracker.core.engine.rules.apply import apply_command


def _started(state):
    state, _ = apply_command(state, AddCombatant(name="Fighter", max_hp=30, initiative=15))
    state, _ = apply_command(state, AddCombatant(name="Wizard", max_hp=14, initiative=9))
    state, _ = apply_command(state, StartCombat())
    return state


def test_double_toggle_is_noop_on_commit(state):
    state = _started(state)
    state, _ = apply_command(state, ToggleStagedCondition(condition="Prone"))
    state, ev = apply_command(state, ToggleStagedCondition(condition="Prone"))

    assert ev[0]["type"] == "PendingUpdated"
    assert ev[0]["payload"]["conditions"] == []

    state, ev = apply_command(state, CommitTurn())
    assert state.combatants["c_1"].conditions == []
    assert [e["type"] for e in ev] == ["TurnCommitted", "TurnChanged"]


def test_staged_toggle_removes_present_condition(state):
    state = _started(state)
    state.combatants["c_1"].conditions = ["Poisoned", "Prone"]

    state, _ = apply_command(state, ToggleStagedCondition(condition="Prone"))
    state, _ = apply_command(state, ToggleStagedCondition(condition="Blinded"))
    state, ev = apply_command(state, CommitTurn())

    assert state.combatants["c_1"].conditions == ["Poisoned", "Blinded"]
    assert [e["type"] for e in ev][:2] == ["ConditionRemoved", "ConditionApplied"]


def test_pending_amounts_are_lenient(state):
    state = _started(state)

    state, ev = apply_command(state, SetPendingDamage(amount="abc"))
    assert state.pending.damage == 0
    state, _ = apply_command(state, SetPendingDamage(amount="-5"))
    assert state.pending.damage == 0
    state, _ = apply_command(state, SetPendingDamage(amount="12"))
    assert state.pending.damage == 12
    state, _ = apply_command(state, SetPendingHeal(amount=""))
    assert state.pending.heal == 0

    assert state.pending.entry_id == "c_1"


def test_staging_requires_active_combatant(state):
    state, _ = apply_command(state, AddCombatant(name="Fighter", max_hp=30, initiative=15))

    state, ev = apply_command(state, SetPendingDamage(amount=3))
    assert ev[0]["payload"]["code"] == "COMBAT_NOT_STARTED"

    state, _ = apply_command(state, AddEnvironmentTurn(name="Lair", initiative=20))
    state, _ = apply_command(state, StartCombat())
    state, ev = apply_command(state, ToggleStagedCondition(condition="Prone"))
    assert ev[0]["type"] == "CommandRejected"
    assert ev[0]["payload"]["code"] == "NOT_A_COMBATANT"
    assert state.pending.is_empty()
