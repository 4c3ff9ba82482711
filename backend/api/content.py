"""Content Group API

Lists selectable groups and previews what a selection resolves to.
"""
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from core.errors import raise_result
from engines.content import ContentCatalog, ContentKind, get_catalog

router = APIRouter()


class GroupResponse(BaseModel):
    id: str
    label: str
    kind: str
    size: int
    preview: list[str]


class SelectionRequest(BaseModel):
    groups: list[str]


class ItemResponse(BaseModel):
    prompt_form: str
    answer_form: str
    group_id: str


class SelectionResponse(BaseModel):
    size: int
    items: list[ItemResponse]


@router.get("/groups", response_model=list[GroupResponse])
async def list_groups(
    kind: ContentKind | None = Query(None),
    catalog: ContentCatalog = Depends(get_catalog),
):
    """List content groups, optionally filtered by kind."""
    return [
        GroupResponse(
            id=g.id,
            label=g.label,
            kind=g.kind,
            size=len(g.items),
            preview=[item.prompt_form for item in g.items[:5]],
        )
        for g in catalog.groups(kind)
    ]


@router.post("/resolve", response_model=SelectionResponse)
async def resolve_selection(
    request: SelectionRequest,
    catalog: ContentCatalog = Depends(get_catalog),
):
    """Resolve a selection to its deduplicated item set."""
    result = catalog.resolve(request.groups)
    raise_result(result)
    items = result.unwrap()
    return SelectionResponse(
        size=len(items),
        items=[
            ItemResponse(prompt_form=i.prompt_form, answer_form=i.answer_form, group_id=i.group_id)
            for i in items
        ],
    )
