from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional, Sequence

from dndtracker.core.engine.commands import (
    AddCombatant,
    AddEnvironmentTurn,
    AddFromTemplate,
    ApplyTargetedConditions,
    ApplyTargetedDamage,
    ApplyTargetedHeal,
    Command,
    CommitTurn,
    OpenTargeting,
    PrevTurn,
    SetPendingDamage,
    SetPendingHeal,
    SetTargetAmount,
    StartCombat,
    ToggleStagedCondition,
    ToggleTarget,
    ToggleTargetCondition,
)
from dndtracker.core.engine.inputs import parse_int
from dndtracker.core.engine.order import current_entry
from dndtracker.core.engine.state import CombatantState, EncounterState
from dndtracker.core.library.templates import NpcTemplate

ErrorKind = Literal["InvalidInput", "NotFound"]


@dataclass
class ValidationError:
    kind: ErrorKind
    code: str
    message: str
    meta: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ValidationResult:
    ok: bool
    errors: List[ValidationError] = field(default_factory=list)


OK = ValidationResult(ok=True)


def _invalid(code: str, message: str, **meta: Any) -> ValidationResult:
    return ValidationResult(
        ok=False,
        errors=[ValidationError(kind="InvalidInput", code=code, message=message, meta=meta)],
    )


def _not_found(code: str, message: str, **meta: Any) -> ValidationResult:
    return ValidationResult(
        ok=False,
        errors=[ValidationError(kind="NotFound", code=code, message=message, meta=meta)],
    )


def _check_name(name: str) -> Optional[ValidationResult]:
    if not name or not name.strip():
        return _invalid("NAME_REQUIRED", "Name required")
    return None


def _check_initiative(raw: Any) -> Optional[ValidationResult]:
    if parse_int(raw) is None:
        return _invalid(
            "INVALID_INITIATIVE", "Valid initiative required", initiative=raw
        )
    return None


def _check_active_combatant(state: EncounterState) -> Optional[ValidationResult]:
    if not state.combat_started:
        return _invalid("COMBAT_NOT_STARTED", "Start combat first")
    entry = current_entry(state)
    if entry is None:
        return _invalid("NO_ENTRIES", "Initiative order is empty")
    if not isinstance(entry, CombatantState):
        return _invalid(
            "NOT_A_COMBATANT",
            "Environment turns have no HP or conditions",
            entry_id=entry.id,
        )
    return None


def _check_targeting(state: EncounterState) -> Optional[ValidationResult]:
    if state.targeting is None:
        return _invalid("NO_TARGETING_SESSION", "Open a targeting session first")
    return None


def find_template(
    templates: Optional[Sequence[NpcTemplate]], template_id: str
) -> Optional[NpcTemplate]:
    for tpl in templates or ():
        if tpl.id == template_id:
            return tpl
    return None


def validate_command(
    state: EncounterState,
    cmd: Command,
    *,
    templates: Optional[Sequence[NpcTemplate]] = None,
) -> ValidationResult:
    # --- roster ---
    if isinstance(cmd, AddCombatant):
        bad = _check_name(cmd.name)
        if bad:
            return bad
        hp = parse_int(cmd.max_hp)
        if hp is None or hp < 1:
            return _invalid("INVALID_HP", "Valid HP required", max_hp=cmd.max_hp)
        return _check_initiative(cmd.initiative) or OK

    if isinstance(cmd, AddFromTemplate):
        if find_template(templates, cmd.template_id) is None:
            return _not_found(
                "TEMPLATE_NOT_FOUND",
                "Template not found",
                template_id=cmd.template_id,
            )
        return _check_initiative(cmd.initiative) or OK

    if isinstance(cmd, AddEnvironmentTurn):
        return _check_name(cmd.name) or _check_initiative(cmd.initiative) or OK

    # RemoveEntry / ApplyHpDelta / Quick* / ClearRoster / EndCombat:
    # неизвестный id = тихий no-op, проверять нечего

    # --- turn cursor ---
    if isinstance(cmd, StartCombat):
        if state.combat_started:
            return _invalid("COMBAT_ALREADY_STARTED", "Combat already started")
        if state.entry_count() == 0:
            return _invalid(
                "NO_ENTRIES", "Add at least one entry before starting combat"
            )
        return OK

    if isinstance(cmd, (CommitTurn, PrevTurn)):
        if not state.combat_started:
            return _invalid("COMBAT_NOT_STARTED", "Start combat first")
        if state.entry_count() == 0:
            return _invalid("NO_ENTRIES", "Initiative order is empty")
        return OK

    # --- staged edits ---
    if isinstance(cmd, (SetPendingDamage, SetPendingHeal, ToggleStagedCondition)):
        return _check_active_combatant(state) or OK

    # --- multi-target ---
    if isinstance(cmd, OpenTargeting):
        if cmd.source_id not in state.combatants:
            return _not_found(
                "UNKNOWN_COMBATANT", "Combatant not found", source_id=cmd.source_id
            )
        return OK

    if isinstance(cmd, ToggleTarget):
        bad = _check_targeting(state)
        if bad:
            return bad
        assert state.targeting is not None
        if cmd.target_id == state.targeting.source_id:
            return _invalid(
                "SELF_TARGET", "A combatant cannot target itself", target_id=cmd.target_id
            )
        if cmd.target_id not in state.combatants:
            return _not_found(
                "UNKNOWN_COMBATANT", "Combatant not found", target_id=cmd.target_id
            )
        return OK

    if isinstance(cmd, (SetTargetAmount, ToggleTargetCondition)):
        return _check_targeting(state) or OK

    if isinstance(cmd, (ApplyTargetedDamage, ApplyTargetedHeal)):
        bad = _check_targeting(state)
        if bad:
            return bad
        assert state.targeting is not None
        amount = state.targeting.amount
        if amount is None or amount < 1:
            return _invalid(
                "INVALID_AMOUNT", "Amount must be a positive integer", amount=amount
            )
        if not state.targeting.targets:
            return _invalid("NO_TARGETS", "Select at least one target")
        missing = [tid for tid in state.targeting.targets if tid not in state.combatants]
        if missing:
            return _not_found("UNKNOWN_COMBATANT", "Target not found", missing=missing)
        return OK

    if isinstance(cmd, ApplyTargetedConditions):
        bad = _check_targeting(state)
        if bad:
            return bad
        assert state.targeting is not None
        if not state.targeting.targets:
            return _invalid("NO_TARGETS", "Select at least one target")
        missing = [tid for tid in state.targeting.targets if tid not in state.combatants]
        if missing:
            return _not_found("UNKNOWN_COMBATANT", "Target not found", missing=missing)
        if not state.targeting.conditions:
            return _invalid("NO_CONDITIONS", "Stage at least one condition")
        return OK

    return OK
