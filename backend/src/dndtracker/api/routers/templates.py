from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from dndtracker.api.schemas import TemplateCreate, TemplateOut
from dndtracker.core.errors import CommandRejectedError
from dndtracker.core.library.templates import TemplateLibrary
from dndtracker.db.deps import get_template_library

router = APIRouter(prefix="/templates", tags=["templates"])


@router.get("", response_model=list[TemplateOut])
def list_templates(library: TemplateLibrary = Depends(get_template_library)):
    return [TemplateOut.model_validate(t.model_dump()) for t in library.list()]


@router.post("", response_model=TemplateOut)
def create_template(
    payload: TemplateCreate, library: TemplateLibrary = Depends(get_template_library)
):
    try:
        tpl = library.add(payload.name, payload.hp_max, ac=payload.ac, cr=payload.cr)
    except CommandRejectedError as e:
        raise HTTPException(status_code=422, detail={"code": e.code, "message": e.message})
    return TemplateOut.model_validate(tpl.model_dump())


@router.post(":reset", response_model=list[TemplateOut])
def reset_templates(library: TemplateLibrary = Depends(get_template_library)):
    return [TemplateOut.model_validate(t.model_dump()) for t in library.reset_to_defaults()]


@router.delete("/{template_id}", status_code=204)
def delete_template(
    template_id: str, library: TemplateLibrary = Depends(get_template_library)
):
    if not library.remove(template_id):
        raise HTTPException(status_code=404, detail="Template not found")
