from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

Phase = Literal["building", "active"]


# ---- runtime ----


class EncounterInitRequest(BaseModel):
    label: str = "init"
    reset_existing: bool = False


class ApplyCommandRequest(BaseModel):
    # разбирается через TypeAdapter(Command) в роутере, чтобы вернуть 422 с текстом
    command: Dict[str, Any]
    label: str = "cmd"


class EncounterRuntimeResponse(BaseModel):
    encounter_id: str
    save_id: int
    state: Dict[str, Any]
    order: List[Dict[str, Any]] = Field(default_factory=list)
    current_entry_id: Optional[str] = None
    phase: Phase = "building"
    events_delta: List[Dict[str, Any]] = Field(default_factory=list)


# ---- library ----


class TemplateCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str
    hp_max: Union[int, str]
    ac: Optional[Union[int, str]] = None
    cr: Optional[str] = None


class TemplateOut(BaseModel):
    id: str
    name: str
    hp_max: int
    ac: str
    cr: str


class ConditionCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")
    name: str = Field(min_length=1)


# ---- encounters ----


class EncounterCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")
    name: str = Field(min_length=1, max_length=200)


class EncounterOut(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str
    name: str
    created_at: datetime
    updated_at: datetime
