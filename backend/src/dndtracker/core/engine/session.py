from __future__ import annotations

from typing import Any, List, Optional, Type, Union

from pydantic import ValidationError as PydanticValidationError

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
from dndtracker.core.engine.order import (
    current_entry,
    encounter_phase,
    initiative_order,
)
from dndtracker.core.engine.rules.apply import apply_command
from dndtracker.core.engine.state import (
    CombatantKind,
    CombatantState,
    EncounterState,
    Entry,
    EnvironmentTurnState,
    Phase,
)
from dndtracker.core.errors import CommandRejectedError
from dndtracker.core.library.conditions import DEFAULT_CONDITIONS, ConditionVocabulary
from dndtracker.core.library.templates import TemplateLibrary

Raw = Union[int, float, str, None]


class EncounterSession:
    """
    Одна сцена боя в памяти. Владеет EncounterState; библиотека шаблонов и
    словарь состояний внедряются снаружи. Отклонённая команда бросает
    CommandRejectedError и не меняет состояние.
    """

    def __init__(
        self,
        templates: Optional[TemplateLibrary] = None,
        conditions: Optional[ConditionVocabulary] = None,
        state: Optional[EncounterState] = None,
    ) -> None:
        self.state = state if state is not None else EncounterState()
        self.templates = templates
        self.conditions = conditions
        self.events: List[dict] = []

    def execute(self, cmd: Command) -> List[dict]:
        library = self.templates.list() if self.templates is not None else None
        self.state, events = apply_command(self.state, cmd, templates=library)
        self.events.extend(events)
        if events and events[0]["type"] == "CommandRejected":
            p = events[0]["payload"]
            raise CommandRejectedError(p["kind"], p["code"], p["message"], p["meta"])
        return events

    def _run(self, cls: Type[Any], **fields: Any) -> List[dict]:
        try:
            cmd = cls(**fields)
        except PydanticValidationError as e:
            # до движка не дошло: отдаём как обычный отказ
            err = e.errors(include_url=False, include_context=False)[0]
            raise CommandRejectedError(
                "InvalidInput",
                "INVALID_COMMAND",
                f"Invalid {'.'.join(str(p) for p in err['loc'])}: {err['msg']}",
                {"command": cls.__name__},
            ) from e
        return self.execute(cmd)

    def _added(self, events: List[dict]) -> Any:
        for ev in events:
            if ev["type"] == "CombatantAdded":
                return self.state.combatants[ev["payload"]["combatant"]["id"]]
            if ev["type"] == "EnvironmentTurnAdded":
                return self.state.env_turns[ev["payload"]["env_turn"]["id"]]
        raise LookupError("no entry was added")

    # ---- queries ----

    def get_order(self) -> List[Entry]:
        return initiative_order(self.state)

    def get_current_entry(self) -> Optional[Entry]:
        return current_entry(self.state)

    def get_entry(self, entry_id: str) -> Optional[Entry]:
        return self.state.get_entry(entry_id)

    def get_round(self) -> int:
        return self.state.round

    def get_state(self) -> Phase:
        return encounter_phase(self.state)

    def available_conditions(self) -> List[str]:
        if self.conditions is None:
            return list(DEFAULT_CONDITIONS)
        return self.conditions.list()

    def selectable_targets(self) -> List[CombatantState]:
        # источник сам себя выбрать не может
        sess = self.state.targeting
        source_id = sess.source_id if sess is not None else None
        return [
            e
            for e in initiative_order(self.state)
            if isinstance(e, CombatantState) and e.id != source_id
        ]

    # ---- roster ----

    def add_combatant(
        self, name: str, max_hp: Raw, initiative: Raw, kind: CombatantKind = "player"
    ) -> CombatantState:
        return self._added(
            self._run(
                AddCombatant, name=name, max_hp=max_hp, initiative=initiative, kind=kind
            )
        )

    def add_from_template(self, template_id: str, initiative: Raw) -> CombatantState:
        return self._added(
            self._run(AddFromTemplate, template_id=template_id, initiative=initiative)
        )

    def add_environment_turn(
        self, name: str, initiative: Raw, description: str = ""
    ) -> EnvironmentTurnState:
        return self._added(
            self._run(
                AddEnvironmentTurn, name=name, initiative=initiative, description=description
            )
        )

    def remove(self, entry_id: str) -> None:
        self._run(RemoveEntry, entry_id=entry_id)

    def apply_delta(self, combatant_id: str, delta: int) -> None:
        self._run(ApplyHpDelta, combatant_id=combatant_id, delta=delta)

    def quick_damage(self, combatant_id: str, amount: Raw) -> None:
        self._run(QuickDamage, combatant_id=combatant_id, amount=amount)

    def quick_heal(self, combatant_id: str, amount: Raw) -> None:
        self._run(QuickHeal, combatant_id=combatant_id, amount=amount)

    def clear(self) -> None:
        self._run(ClearRoster)

    # ---- turn cursor ----

    def start(self) -> None:
        self._run(StartCombat)

    def commit_turn(self) -> None:
        self._run(CommitTurn)

    def prev_turn(self) -> None:
        self._run(PrevTurn)

    def end(self) -> None:
        self._run(EndCombat)

    # ---- staged edits ----

    def set_pending_damage(self, amount: Raw) -> None:
        self._run(SetPendingDamage, amount=amount)

    def set_pending_heal(self, amount: Raw) -> None:
        self._run(SetPendingHeal, amount=amount)

    def toggle_staged_condition(self, name: str) -> None:
        self._run(ToggleStagedCondition, condition=name)

    # ---- multi-target ----

    def open_targeting(self, source_id: str) -> None:
        self._run(OpenTargeting, source_id=source_id)

    def toggle_target(self, target_id: str) -> None:
        self._run(ToggleTarget, target_id=target_id)

    def set_target_amount(self, amount: Raw) -> None:
        self._run(SetTargetAmount, amount=amount)

    def toggle_target_condition(self, name: str) -> None:
        self._run(ToggleTargetCondition, condition=name)

    def apply_targeted_damage(self) -> None:
        self._run(ApplyTargetedDamage)

    def apply_targeted_heal(self) -> None:
        self._run(ApplyTargetedHeal)

    def apply_targeted_conditions(self) -> None:
        self._run(ApplyTargetedConditions)

    def close_targeting(self) -> None:
        self._run(CloseTargeting)
