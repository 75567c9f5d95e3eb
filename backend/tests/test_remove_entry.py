from dndtracker.core.engine.commands import (
    AddCombatant,
    ClearRoster,
    CommitTurn,
    OpenTargeting,
    RemoveEntry,
    SetPendingDamage,
    StartCombat,
    ToggleTarget,
)
from dndtracker.core.engine.order import current_entry
from dndtracker.core.engine.rules.apply import apply_command


def _five_started(state):
    for name, init in (("A", 50), ("B", 40), ("C", 30), ("D", 20), ("E", 10)):
        state, _ = apply_command(state, AddCombatant(name=name, max_hp=10, initiative=init))
    state, _ = apply_command(state, StartCombat())
    return state


def _by_name(state, name):
    return next(c for c in state.combatants.values() if c.name == name)


def test_removing_active_entry_moves_to_successor(state):
    state = _five_started(state)
    state, _ = apply_command(state, CommitTurn())
    state, _ = apply_command(state, CommitTurn())
    assert state.current_index == 2
    assert current_entry(state).name == "C"

    state, ev = apply_command(state, RemoveEntry(entry_id=_by_name(state, "C").id))

    assert [e["type"] for e in ev] == ["EntryRemoved"]
    assert state.current_index == 2
    assert current_entry(state).name == "D"


def test_removing_first_entry_while_first_is_active(state):
    state = _five_started(state)
    state, _ = apply_command(state, RemoveEntry(entry_id=_by_name(state, "A").id))

    assert state.current_index == 0
    assert current_entry(state).name == "B"


def test_removing_earlier_entry_keeps_active_identity(state):
    state = _five_started(state)
    state, _ = apply_command(state, CommitTurn())
    state, _ = apply_command(state, CommitTurn())

    state, _ = apply_command(state, RemoveEntry(entry_id=_by_name(state, "A").id))
    assert state.current_index == 1
    assert current_entry(state).name == "C"


def test_removing_last_active_entry_wraps_to_zero(state):
    state = _five_started(state)
    for _ in range(4):
        state, _ = apply_command(state, CommitTurn())
    assert current_entry(state).name == "E"

    state, _ = apply_command(state, RemoveEntry(entry_id=_by_name(state, "E").id))
    assert state.current_index == 0
    assert current_entry(state).name == "A"


def test_removing_active_entry_discards_its_pending_edits(state):
    state = _five_started(state)
    state, _ = apply_command(state, SetPendingDamage(amount=4))

    state, ev = apply_command(state, RemoveEntry(entry_id=_by_name(state, "A").id))
    assert [e["type"] for e in ev] == ["PendingDiscarded", "EntryRemoved"]
    assert state.pending.is_empty()

    state, _ = apply_command(state, CommitTurn())
    assert _by_name(state, "B").hp_current == 10


def test_remove_unknown_id_is_silent_noop(state):
    state = _five_started(state)
    state, ev = apply_command(state, RemoveEntry(entry_id="c_999"))

    assert ev == []
    assert len(state.combatants) == 5
    assert state.current_index == 0


def test_remove_prunes_targeting(state):
    state = _five_started(state)
    a, b = _by_name(state, "A").id, _by_name(state, "B").id

    state, _ = apply_command(state, OpenTargeting(source_id=a))
    state, _ = apply_command(state, ToggleTarget(target_id=b))
    state, _ = apply_command(state, RemoveEntry(entry_id=b))
    assert state.targeting.targets == []

    state, ev = apply_command(state, RemoveEntry(entry_id=a))
    assert state.targeting is None
    closed = [e for e in ev if e["type"] == "TargetingClosed"]
    assert closed[0]["payload"]["reason"] == "source_removed"


def test_clear_roster_empties_everything(state):
    state = _five_started(state)
    state, ev = apply_command(state, ClearRoster())

    assert [e["type"] for e in ev] == ["RosterCleared"]
    assert len(ev[0]["payload"]["removed_ids"]) == 5
    assert state.combatants == {}
    assert state.current_index == 0
