from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from dndtracker.api.schemas import ConditionCreate
from dndtracker.core.library.conditions import ConditionVocabulary
from dndtracker.db.deps import get_condition_vocabulary

router = APIRouter(prefix="/conditions", tags=["conditions"])


@router.get("", response_model=list[str])
def list_conditions(vocab: ConditionVocabulary = Depends(get_condition_vocabulary)):
    return vocab.list()


@router.post("", response_model=list[str])
def add_condition(
    payload: ConditionCreate,
    vocab: ConditionVocabulary = Depends(get_condition_vocabulary),
):
    # пустое или повторное название молча игнорируется
    vocab.add(payload.name)
    return vocab.list()


@router.post(":reset", response_model=list[str])
def reset_conditions(vocab: ConditionVocabulary = Depends(get_condition_vocabulary)):
    return vocab.reset_to_defaults()


@router.delete("/{name}", response_model=list[str])
def delete_condition(
    name: str, vocab: ConditionVocabulary = Depends(get_condition_vocabulary)
):
    if not vocab.remove(name):
        raise HTTPException(status_code=404, detail="Condition not found")
    return vocab.list()
