from dndtracker.core.engine.commands import (
    AddCombatant,
    AddEnvironmentTurn,
    CommitTurn,
    StartCombat,
)
from dndtracker.core.engine.order import current_entry
from dndtracker.core.engine.rules.apply import apply_command


def test_add_combatant_starts_at_full_hp_without_conditions(state):
    state, ev = apply_command(
        state, AddCombatant(name="  Aria ", max_hp="24", initiative="15", kind="player")
    )

    assert [e["type"] for e in ev] == ["CombatantAdded"]
    c = state.combatants["c_1"]
    assert c.name == "Aria"
    assert c.hp_current == c.hp_max == 24
    assert c.initiative == 15
    assert c.conditions == []
    assert c.took_turn_this_round is False


def test_add_combatant_parses_leading_integer(state):
    state, _ = apply_command(state, AddCombatant(name="Orc", max_hp="15hp", initiative="+3"))
    c = state.combatants["c_1"]
    assert c.hp_max == 15
    assert c.initiative == 3


def test_add_combatant_rejects_bad_input(state):
    cases = [
        (AddCombatant(name="   ", max_hp=10, initiative=5), "NAME_REQUIRED"),
        (AddCombatant(name="A", max_hp="0", initiative=5), "INVALID_HP"),
        (AddCombatant(name="A", max_hp="abc", initiative=5), "INVALID_HP"),
        (AddCombatant(name="A", max_hp=-3, initiative=5), "INVALID_HP"),
        (AddCombatant(name="A", max_hp=10, initiative="x"), "INVALID_INITIATIVE"),
        (AddCombatant(name="A", max_hp=10, initiative=None), "INVALID_INITIATIVE"),
    ]
    for cmd, code in cases:
        state, ev = apply_command(state, cmd)
        assert ev[0]["type"] == "CommandRejected"
        assert ev[0]["payload"]["kind"] == "InvalidInput"
        assert ev[0]["payload"]["code"] == code

    assert state.combatants == {}


def test_add_environment_turn(state):
    state, ev = apply_command(
        state,
        AddEnvironmentTurn(name="Lair Action", initiative=20, description="The walls shake"),
    )

    assert [e["type"] for e in ev] == ["EnvironmentTurnAdded"]
    env = state.env_turns["c_1"]
    assert env.name == "Lair Action"
    assert env.initiative == 20
    assert env.description == "The walls shake"
    assert state.combatants == {}


def test_environment_turn_requires_name(state):
    state, ev = apply_command(state, AddEnvironmentTurn(name=" ", initiative=20))
    assert ev[0]["payload"]["code"] == "NAME_REQUIRED"
    assert state.env_turns == {}


def test_late_joiner_seeding_and_active_entry_is_kept(state):
    state, _ = apply_command(state, AddCombatant(name="A", max_hp=10, initiative=15))
    state, _ = apply_command(state, AddCombatant(name="B", max_hp=10, initiative=10))
    state, _ = apply_command(state, StartCombat())
    assert current_entry(state).name == "A"

    # ниже активного: ещё будет ходить в этом раунде
    state, _ = apply_command(state, AddCombatant(name="C", max_hp=10, initiative=12))
    # не ниже активного: считается уже походившим
    state, _ = apply_command(state, AddCombatant(name="D", max_hp=10, initiative=15))
    state, _ = apply_command(state, AddCombatant(name="E", max_hp=10, initiative=20))

    by_name = {c.name: c for c in state.combatants.values()}
    assert by_name["C"].took_turn_this_round is False
    assert by_name["D"].took_turn_this_round is True
    assert by_name["E"].took_turn_this_round is True

    # E встал перед A, но активным остаётся A
    assert current_entry(state).name == "A"
    assert state.current_index == 1

    state, _ = apply_command(state, CommitTurn())
    assert current_entry(state).name == "D"


def test_adding_before_combat_does_not_seed_flag(state):
    state, _ = apply_command(state, AddCombatant(name="A", max_hp=10, initiative=30))
    assert state.combatants["c_1"].took_turn_this_round is False


def test_add_combatant_rejects_fractional_numbers(state):
    state, ev = apply_command(state, AddCombatant(name="A", max_hp=7.5, initiative=10))
    assert ev[0]["payload"]["code"] == "INVALID_HP"

    state, ev = apply_command(state, AddCombatant(name="A", max_hp=7, initiative=10.5))
    assert ev[0]["payload"]["code"] == "INVALID_INITIATIVE"
    assert state.combatants == {}
