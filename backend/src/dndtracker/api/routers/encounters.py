from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session

from dndtracker.api.schemas import EncounterCreate, EncounterOut
from dndtracker.db.deps import get_db
from dndtracker.db.models import Encounter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/encounters", tags=["encounters"])


def _out(e: Encounter) -> EncounterOut:
    return EncounterOut(
        id=e.id, name=e.name, created_at=e.created_at, updated_at=e.updated_at
    )


@router.get("", response_model=list[EncounterOut])
def list_encounters(db: Session = Depends(get_db)):
    rows = db.scalars(select(Encounter).order_by(Encounter.created_at.desc())).all()
    return [_out(e) for e in rows]


@router.post("", response_model=EncounterOut)
def create_encounter(payload: EncounterCreate, db: Session = Depends(get_db)):
    enc = Encounter(name=payload.name.strip())
    db.add(enc)
    db.commit()
    db.refresh(enc)
    logger.info("encounter created id=%s", enc.id)
    return _out(enc)


@router.get("/{encounter_id}", response_model=EncounterOut)
def get_encounter(encounter_id: str, db: Session = Depends(get_db)):
    enc = db.get(Encounter, encounter_id)
    if not enc:
        raise HTTPException(status_code=404, detail="Encounter not found")
    return _out(enc)


@router.delete("/{encounter_id}", status_code=204)
def delete_encounter(encounter_id: str, db: Session = Depends(get_db)):
    enc = db.get(Encounter, encounter_id)
    if not enc:
        raise HTTPException(status_code=404, detail="Encounter not found")
    # снапшоты уходят каскадом
    db.delete(enc)
    db.commit()
