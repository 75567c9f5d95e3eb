from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.orm import Session

from dndtracker.core.engine.state import EncounterState
from dndtracker.core.persistence.state_codec import (
    encounter_state_from_dict,
    encounter_state_to_dict,
)
from dndtracker.db.models import EncounterSnapshot

logger = logging.getLogger(__name__)


def load_latest_snapshot(
    db: Session, encounter_id: str
) -> Tuple[Optional[int], Optional[EncounterState], List[Dict[str, Any]]]:
    """(snapshot_id, state, events последней команды) или (None, None, [])."""
    row = db.scalars(
        select(EncounterSnapshot)
        .where(EncounterSnapshot.encounter_id == encounter_id)
        .order_by(EncounterSnapshot.id.desc())
        .limit(1)
    ).first()
    if row is None:
        return None, None, []
    return row.id, encounter_state_from_dict(row.state_json), list(row.events_json or [])


def save_snapshot(
    db: Session,
    *,
    encounter_id: str,
    label: Optional[str],
    state: EncounterState,
    events_delta: List[Dict[str, Any]],
) -> EncounterSnapshot:
    row = EncounterSnapshot(
        encounter_id=encounter_id,
        label=label,
        state_json=encounter_state_to_dict(state),
        events_json=list(events_delta),
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    logger.debug(
        "snapshot %s saved for encounter %s (%d events)",
        row.id,
        encounter_id,
        len(events_delta),
    )
    return row
