"""
Initiative Endpoints

An initiative may point at a goal of the same tenant. The goal id is
checked on create and update like any other cross-row reference.
"""
from fastapi import APIRouter, Depends, Query, status
from typing import List, Optional

from roadmapper.api.deps import get_list_options, get_request_context, get_write_context, list_context, with_filters
from roadmapper.api.endpoints.common import fetch_owned, verify_owned_ids
from roadmapper.core.context import RequestContext
from roadmapper.data.records import ListOptions
from roadmapper.schemas.initiative import InitiativeCreate, InitiativeResponse, InitiativeStatus, InitiativeUpdate
from roadmapper.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/initiatives", tags=["initiatives"])


@router.get("", response_model=List[InitiativeResponse])
async def list_initiatives(
    status_filter: Optional[InitiativeStatus] = Query(None, alias="status"),
    priority: Optional[int] = Query(None, ge=1, le=5),
    goal_id: Optional[str] = None,
    options: ListOptions = Depends(get_list_options),
    ctx: Optional[RequestContext] = Depends(list_context("initiatives.list")),
):
    if ctx is None:
        return []
    options = with_filters(
        options,
        status=status_filter.value if status_filter else None,
        priority=priority,
        goal_id=goal_id,
    )
    return await ctx.stores.initiatives.find_by_tenant_with_options(ctx.tenant_id, options)


@router.get("/{initiative_id}", response_model=InitiativeResponse)
async def get_initiative(initiative_id: str, ctx: RequestContext = Depends(get_request_context)):
    return await fetch_owned(ctx, ctx.stores.initiatives, initiative_id, "initiative")


@router.post("", response_model=InitiativeResponse, status_code=status.HTTP_201_CREATED)
async def create_initiative(initiative_data: InitiativeCreate, ctx: RequestContext = Depends(get_write_context)):
    if initiative_data.goal_id:
        await verify_owned_ids(ctx, ctx.stores.goals, [initiative_data.goal_id], "goal")

    initiative = await ctx.stores.initiatives.create({**initiative_data.model_dump(), "tenant_id": ctx.tenant_id})
    logger.info(f"Initiative created: {initiative['id']}", extra={"tenant_id": ctx.tenant_id})
    return initiative


@router.put("/{initiative_id}", response_model=InitiativeResponse)
async def update_initiative(
    initiative_id: str,
    initiative_data: InitiativeUpdate,
    ctx: RequestContext = Depends(get_write_context),
):
    await fetch_owned(ctx, ctx.stores.initiatives, initiative_id, "initiative")
    if initiative_data.goal_id:
        await verify_owned_ids(ctx, ctx.stores.goals, [initiative_data.goal_id], "goal")
    return await ctx.stores.initiatives.update(initiative_id, initiative_data.model_dump(exclude_unset=True))


@router.delete("/{initiative_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_initiative(initiative_id: str, ctx: RequestContext = Depends(get_write_context)):
    """
    Delete an initiative.

    Feedback links and comments go with it. Ideas stay and lose their
    initiative_id (FK SET NULL).
    """
    await fetch_owned(ctx, ctx.stores.initiatives, initiative_id, "initiative")
    await ctx.stores.feedback_initiatives.remove_all_for_related(initiative_id)
    await ctx.stores.comments.delete_where(ctx.tenant_id, {"entity_type": "initiative", "entity_id": initiative_id})
    await ctx.stores.initiatives.delete(initiative_id)
    logger.info(f"Initiative deleted: {initiative_id}", extra={"tenant_id": ctx.tenant_id})
    return None
