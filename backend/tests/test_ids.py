from dndtracker.core.engine.commands import AddCombatant, RemoveEntry
from dndtracker.core.engine.ids import IdGenerator
from dndtracker.core.engine.rules.apply import apply_command


def test_ids_are_strictly_increasing():
    gen = IdGenerator()
    assert [gen.next() for _ in range(3)] == ["c_1", "c_2", "c_3"]
    assert gen.last == 3


def test_removed_entry_id_is_never_reissued(state):
    state, _ = apply_command(state, AddCombatant(name="A", max_hp=10, initiative=5))
    state, _ = apply_command(state, RemoveEntry(entry_id="c_1"))
    state, _ = apply_command(state, AddCombatant(name="B", max_hp=10, initiative=5))

    assert list(state.combatants) == ["c_2"]


def test_advance_past_skips_restored_ids():
    gen = IdGenerator()
    gen.advance_past(["c_7", "c_3", "npc_goblin", "c_x"])
    assert gen.next() == "c_8"

    # меньшие id не откатывают счётчик назад
    gen.advance_past(["c_2"])
    assert gen.next() == "c_9"
