from typing import Literal

from fastapi import APIRouter, HTTPException, Query

from refsearch.api.v1.schemas import ShotCatalogRead, ShotTemplateRead
from refsearch.config import loaders
from refsearch.core.shot_types import Lens, Pack, ShotMode


router = APIRouter(prefix="/reference-shots", tags=["reference-shots"])


@router.get("", response_model=ShotCatalogRead, response_model_exclude_none=True)
def list_reference_shots(
    pack: str | None = None,
    lens: int | None = None,
    mode: str | None = None,
    group_by: Literal["pack", "lens"] | None = Query(default=None, alias="groupBy"),
):
    """List reference shot templates, optionally filtered and grouped."""
    if pack is not None and not Pack.parse(pack).known:
        raise HTTPException(status_code=400, detail=f"unknown pack: {pack}")
    if lens is not None and not Lens.parse(lens).known:
        raise HTTPException(status_code=400, detail=f"unknown lens: {lens}")
    if mode is not None and not ShotMode.parse(mode).known:
        raise HTTPException(status_code=400, detail=f"unknown mode: {mode}")

    templates = [
        ShotTemplateRead.model_validate(t) for t in loaders.list_shot_templates(pack=pack, lens=lens, mode=mode)
    ]

    groups = None
    if group_by == "pack":
        groups = {}
        for template in templates:
            groups.setdefault(template.pack.value, []).append(template)
    elif group_by == "lens":
        groups = {}
        for template in templates:
            groups.setdefault(f"{template.lens_mm.value}mm", []).append(template)

    return ShotCatalogRead(
        total=len(templates),
        core_count=sum(1 for t in templates if t.pack == Pack.CORE),
        addon_count=sum(1 for t in templates if t.pack == Pack.ADDON),
        templates=templates,
        groups=groups,
    )
