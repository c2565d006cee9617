"""
Goal Endpoints

Goals are the top of the roadmap hierarchy. Deleting a goal detaches its
initiatives (goal_id SET NULL) rather than deleting them.
"""
from fastapi import APIRouter, Depends, Query, status
from typing import List, Optional

from roadmapper.api.deps import get_list_options, get_request_context, get_write_context, list_context, with_filters
from roadmapper.api.endpoints.common import fetch_owned
from roadmapper.core.context import RequestContext
from roadmapper.data.records import ListOptions
from roadmapper.schemas.goal import GoalCreate, GoalResponse, GoalStatus, GoalUpdate
from roadmapper.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/goals", tags=["goals"])


@router.get("", response_model=List[GoalResponse])
async def list_goals(
    status_filter: Optional[GoalStatus] = Query(None, alias="status"),
    options: ListOptions = Depends(get_list_options),
    ctx: Optional[RequestContext] = Depends(list_context("goals.list")),
):
    """List goals of the current tenant."""
    if ctx is None:
        return []
    options = with_filters(options, status=status_filter.value if status_filter else None)
    return await ctx.stores.goals.find_by_tenant_with_options(ctx.tenant_id, options)


@router.get("/{goal_id}", response_model=GoalResponse)
async def get_goal(goal_id: str, ctx: RequestContext = Depends(get_request_context)):
    return await fetch_owned(ctx, ctx.stores.goals, goal_id, "goal")


@router.post("", response_model=GoalResponse, status_code=status.HTTP_201_CREATED)
async def create_goal(goal_data: GoalCreate, ctx: RequestContext = Depends(get_write_context)):
    goal = await ctx.stores.goals.create({**goal_data.model_dump(), "tenant_id": ctx.tenant_id})
    logger.info(f"Goal created: {goal['id']}", extra={"tenant_id": ctx.tenant_id})
    return goal


@router.put("/{goal_id}", response_model=GoalResponse)
async def update_goal(goal_id: str, goal_data: GoalUpdate, ctx: RequestContext = Depends(get_write_context)):
    await fetch_owned(ctx, ctx.stores.goals, goal_id, "goal")
    return await ctx.stores.goals.update(goal_id, goal_data.model_dump(exclude_unset=True))


@router.delete("/{goal_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_goal(goal_id: str, ctx: RequestContext = Depends(get_write_context)):
    await fetch_owned(ctx, ctx.stores.goals, goal_id, "goal")
    await ctx.stores.goals.delete(goal_id)
    logger.info(f"Goal deleted: {goal_id}", extra={"tenant_id": ctx.tenant_id})
    return None
