from __future__ import annotations

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from dndtracker.api.schemas import (
    ApplyCommandRequest,
    EncounterInitRequest,
    EncounterRuntimeResponse,
)
from dndtracker.core.engine.commands import Command
from dndtracker.core.engine.order import current_entry, encounter_phase, initiative_order
from dndtracker.core.engine.rules.apply import apply_command as engine_apply
from dndtracker.core.engine.state import CombatantState, EncounterState
from dndtracker.core.library.templates import TemplateLibrary
from dndtracker.core.persistence.runtime_store import load_latest_snapshot, save_snapshot
from dndtracker.core.persistence.state_codec import encounter_state_to_dict
from dndtracker.db.deps import get_db, get_template_library
from dndtracker.db.models import Encounter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/encounters", tags=["encounter-runtime"])

_COMMAND_ADAPTER = TypeAdapter(Command)


def _require_encounter(db: Session, encounter_id: str) -> Encounter:
    enc = db.get(Encounter, encounter_id)
    if not enc:
        raise HTTPException(status_code=404, detail="Encounter not found")
    return enc


def _order_view(state: EncounterState) -> List[Dict[str, Any]]:
    out: List[Dict[str, Any]] = []
    for e in initiative_order(state):
        item: Dict[str, Any] = {
            "id": e.id,
            "name": e.name,
            "initiative": e.initiative,
            "kind": e.kind if isinstance(e, CombatantState) else "environment",
        }
        if isinstance(e, CombatantState):
            item["hp_current"] = e.hp_current
            item["hp_max"] = e.hp_max
            item["conditions"] = list(e.conditions)
            item["is_down"] = e.is_down
        else:
            item["description"] = e.description
        out.append(item)
    return out


def _response(
    encounter_id: str,
    save_id: int,
    state: EncounterState,
    events_delta: List[Dict[str, Any]],
) -> EncounterRuntimeResponse:
    active = current_entry(state)
    return EncounterRuntimeResponse(
        encounter_id=encounter_id,
        save_id=save_id,
        state=encounter_state_to_dict(state),
        order=_order_view(state),
        current_entry_id=active.id if active is not None else None,
        phase=encounter_phase(state),
        events_delta=events_delta,
    )


@router.post("/{encounter_id}/state:init", response_model=EncounterRuntimeResponse)
def init_state(
    encounter_id: str, req: EncounterInitRequest, db: Session = Depends(get_db)
):
    _require_encounter(db, encounter_id)

    latest_id, latest_state, _events = load_latest_snapshot(db, encounter_id)
    if latest_id is not None and latest_state is not None and not req.reset_existing:
        return _response(encounter_id, latest_id, latest_state, [])

    state = EncounterState()
    row = save_snapshot(
        db, encounter_id=encounter_id, label=req.label, state=state, events_delta=[]
    )
    logger.info("encounter %s initialised (snapshot %s)", encounter_id, row.id)
    return _response(encounter_id, row.id, state, [])


@router.post("/{encounter_id}/commands:apply", response_model=EncounterRuntimeResponse)
def apply_command(
    encounter_id: str,
    req: ApplyCommandRequest,
    db: Session = Depends(get_db),
    library: TemplateLibrary = Depends(get_template_library),
):
    _require_encounter(db, encounter_id)

    save_id, state, _events = load_latest_snapshot(db, encounter_id)
    if save_id is None or state is None:
        raise HTTPException(
            status_code=409,
            detail="Encounter is not initialized. Call state:init first.",
        )

    try:
        cmd = _COMMAND_ADAPTER.validate_python(req.command)
    except PydanticValidationError as e:
        raise HTTPException(
            status_code=422, detail=e.errors(include_url=False, include_context=False)
        )

    # отклонённая команда тоже пишется снапшотом: в нём её событие
    new_state, events_delta = engine_apply(state, cmd, templates=library.list())
    row = save_snapshot(
        db,
        encounter_id=encounter_id,
        label=req.label,
        state=new_state,
        events_delta=events_delta,
    )
    return _response(encounter_id, row.id, new_state, events_delta)


@router.get("/{encounter_id}/state", response_model=EncounterRuntimeResponse)
def get_state(encounter_id: str, db: Session = Depends(get_db)):
    _require_encounter(db, encounter_id)

    save_id, state, events = load_latest_snapshot(db, encounter_id)
    if save_id is None or state is None:
        raise HTTPException(status_code=404, detail="No saved state for encounter")
    return _response(encounter_id, save_id, state, events)
