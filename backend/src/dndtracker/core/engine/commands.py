# backend/src/dndtracker/core/engine/commands.py

from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from dndtracker.core.engine.inputs import parse_amount, parse_optional_amount

# числа с формы приходят текстом: строгую проверку делает валидатор
RawNumber = Union[int, float, str, None]


class CommandBase(BaseModel):
    model_config = ConfigDict(extra="forbid")
    type: str


class LenientAmount(CommandBase):
    """Степпер: нераспознанный текст -> 0, ниже нуля не опускаемся."""

    amount: int = 0

    @field_validator("amount", mode="before")
    @classmethod
    def coerce_amount(cls, v):
        return max(0, parse_amount(v))


# ---- roster ----


class AddCombatant(CommandBase):
    type: Literal["AddCombatant"] = "AddCombatant"
    name: str = ""
    max_hp: RawNumber = None
    initiative: RawNumber = None
    kind: Literal["player", "npc"] = "player"


class AddFromTemplate(CommandBase):
    type: Literal["AddFromTemplate"] = "AddFromTemplate"
    template_id: str
    initiative: RawNumber = None


class AddEnvironmentTurn(CommandBase):
    type: Literal["AddEnvironmentTurn"] = "AddEnvironmentTurn"
    name: str = "Lair Action"
    initiative: RawNumber = 20
    description: str = ""


class RemoveEntry(CommandBase):
    type: Literal["RemoveEntry"] = "RemoveEntry"
    entry_id: str


class ApplyHpDelta(CommandBase):
    type: Literal["ApplyHpDelta"] = "ApplyHpDelta"
    combatant_id: str
    delta: int


class QuickDamage(LenientAmount):
    type: Literal["QuickDamage"] = "QuickDamage"
    combatant_id: str

    @field_validator("amount", mode="before")
    @classmethod
    def coerce_amount(cls, v):
        # "-4" и "4" дают одинаковый урон
        return abs(parse_amount(v))


class QuickHeal(LenientAmount):
    type: Literal["QuickHeal"] = "QuickHeal"
    combatant_id: str

    @field_validator("amount", mode="before")
    @classmethod
    def coerce_amount(cls, v):
        return abs(parse_amount(v))


class ClearRoster(CommandBase):
    type: Literal["ClearRoster"] = "ClearRoster"


# ---- turn cursor ----


class StartCombat(CommandBase):
    type: Literal["StartCombat"] = "StartCombat"


class CommitTurn(CommandBase):
    type: Literal["CommitTurn"] = "CommitTurn"


class PrevTurn(CommandBase):
    type: Literal["PrevTurn"] = "PrevTurn"


class EndCombat(CommandBase):
    type: Literal["EndCombat"] = "EndCombat"


# ---- staged edits активной записи ----


class SetPendingDamage(LenientAmount):
    type: Literal["SetPendingDamage"] = "SetPendingDamage"


class SetPendingHeal(LenientAmount):
    type: Literal["SetPendingHeal"] = "SetPendingHeal"


class ToggleStagedCondition(CommandBase):
    type: Literal["ToggleStagedCondition"] = "ToggleStagedCondition"
    condition: str = Field(min_length=1)


# ---- multi-target ----


class OpenTargeting(CommandBase):
    type: Literal["OpenTargeting"] = "OpenTargeting"
    source_id: str


class ToggleTarget(CommandBase):
    type: Literal["ToggleTarget"] = "ToggleTarget"
    target_id: str


class SetTargetAmount(CommandBase):
    type: Literal["SetTargetAmount"] = "SetTargetAmount"
    amount: Optional[int] = None

    @field_validator("amount", mode="before")
    @classmethod
    def coerce_amount(cls, v):
        return parse_optional_amount(v)


class ToggleTargetCondition(CommandBase):
    type: Literal["ToggleTargetCondition"] = "ToggleTargetCondition"
    condition: str = Field(min_length=1)


class ApplyTargetedDamage(CommandBase):
    type: Literal["ApplyTargetedDamage"] = "ApplyTargetedDamage"


class ApplyTargetedHeal(CommandBase):
    type: Literal["ApplyTargetedHeal"] = "ApplyTargetedHeal"


class ApplyTargetedConditions(CommandBase):
    type: Literal["ApplyTargetedConditions"] = "ApplyTargetedConditions"


class CloseTargeting(CommandBase):
    type: Literal["CloseTargeting"] = "CloseTargeting"


Command = Annotated[
    Union[
        AddCombatant,
        AddFromTemplate,
        AddEnvironmentTurn,
        RemoveEntry,
        ApplyHpDelta,
        QuickDamage,
        QuickHeal,
        ClearRoster,
        StartCombat,
        CommitTurn,
        PrevTurn,
        EndCombat,
        SetPendingDamage,
        SetPendingHeal,
        ToggleStagedCondition,
        OpenTargeting,
        ToggleTarget,
        SetTargetAmount,
        ToggleTargetCondition,
        ApplyTargetedDamage,
        ApplyTargetedHeal,
        ApplyTargetedConditions,
        CloseTargeting,
    ],
    Field(discriminator="type"),
]
