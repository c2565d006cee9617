"""
Idea Endpoints

CRUD for ideas plus the idea <-> customer links (ideas_customers).

TENANT_ISOLATION: the ideas_customers table has no tenant_id. Both the idea
and every customer id are checked against the request tenant before a link
is written, and links are only read for an idea that passed the same check.
"""
from fastapi import APIRouter, Depends, Query, status
from typing import List, Optional

from roadmapper.api.deps import get_list_options, get_request_context, get_write_context, list_context, with_filters
from roadmapper.api.endpoints.common import fetch_owned, load_linked, verify_owned_ids
from roadmapper.core.context import RequestContext
from roadmapper.data.records import ListOptions
from roadmapper.schemas.customer import CustomerResponse
from roadmapper.schemas.idea import (
    IdeaCreate,
    IdeaDetailResponse,
    IdeaEffort,
    IdeaPriority,
    IdeaResponse,
    IdeaStatus,
    IdeaUpdate,
)
from roadmapper.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/ideas", tags=["ideas"])

LINK_FIELDS = {"customer_ids"}


@router.get("", response_model=List[IdeaResponse])
async def list_ideas(
    status_filter: Optional[IdeaStatus] = Query(None, alias="status"),
    priority: Optional[IdeaPriority] = None,
    effort: Optional[IdeaEffort] = None,
    initiative_id: Optional[str] = None,
    customer_id: Optional[str] = None,
    options: ListOptions = Depends(get_list_options),
    ctx: Optional[RequestContext] = Depends(list_context("ideas.list")),
):
    """
    List ideas of the current tenant.

    customer_id filters through the junction table; the outer tenant_id
    condition still applies, so a foreign customer id just matches nothing.
    """
    if ctx is None:
        return []
    options = with_filters(
        options,
        status=status_filter.value if status_filter else None,
        priority=priority.value if priority else None,
        effort=effort.value if effort else None,
        initiative_id=initiative_id,
        customer_id=customer_id,
    )
    return await ctx.stores.ideas.find_by_tenant_with_options(ctx.tenant_id, options)


@router.get("/{idea_id}", response_model=IdeaDetailResponse)
async def get_idea(idea_id: str, ctx: RequestContext = Depends(get_request_context)):
    """Idea with its linked customers."""
    idea = await fetch_owned(ctx, ctx.stores.ideas, idea_id, "idea")
    customer_ids = await ctx.stores.idea_customers.list_by_owner(idea_id)
    return {**idea, "customers": await load_linked(ctx, ctx.stores.customers, customer_ids)}


@router.post("", response_model=IdeaDetailResponse, status_code=status.HTTP_201_CREATED)
async def create_idea(idea_data: IdeaCreate, ctx: RequestContext = Depends(get_write_context)):
    """
    Create an idea and link the given customers.

    The row and its links are written in the request transaction: an invalid
    customer id rolls back the idea as well.
    """
    if idea_data.initiative_id:
        await verify_owned_ids(ctx, ctx.stores.initiatives, [idea_data.initiative_id], "initiative")
    customer_ids = await verify_owned_ids(ctx, ctx.stores.customers, idea_data.customer_ids, "customer")

    idea = await ctx.stores.ideas.create({**idea_data.model_dump(exclude=LINK_FIELDS), "tenant_id": ctx.tenant_id})
    await ctx.stores.idea_customers.replace(idea["id"], customer_ids)

    logger.info(f"Idea created: {idea['id']} with {len(customer_ids)} customers", extra={"tenant_id": ctx.tenant_id})
    return {**idea, "customers": await load_linked(ctx, ctx.stores.customers, customer_ids)}


@router.put("/{idea_id}", response_model=IdeaDetailResponse)
async def update_idea(idea_id: str, idea_data: IdeaUpdate, ctx: RequestContext = Depends(get_write_context)):
    """
    Update an idea.

    When customer_ids is sent it replaces the full set of links (clear then
    re-insert, same transaction as the row update).
    """
    await fetch_owned(ctx, ctx.stores.ideas, idea_id, "idea")
    if idea_data.initiative_id:
        await verify_owned_ids(ctx, ctx.stores.initiatives, [idea_data.initiative_id], "initiative")

    changes = idea_data.model_dump(exclude_unset=True, exclude=LINK_FIELDS)
    idea = await ctx.stores.ideas.update(idea_id, changes)

    if idea_data.customer_ids is not None:
        customer_ids = await verify_owned_ids(ctx, ctx.stores.customers, idea_data.customer_ids, "customer")
        await ctx.stores.idea_customers.replace(idea_id, customer_ids)

    customer_ids = await ctx.stores.idea_customers.list_by_owner(idea_id)
    return {**idea, "customers": await load_linked(ctx, ctx.stores.customers, customer_ids)}


@router.delete("/{idea_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_idea(idea_id: str, ctx: RequestContext = Depends(get_write_context)):
    await fetch_owned(ctx, ctx.stores.ideas, idea_id, "idea")
    await ctx.stores.idea_customers.remove_all(idea_id)
    await ctx.stores.comments.delete_where(ctx.tenant_id, {"entity_type": "idea", "entity_id": idea_id})
    await ctx.stores.ideas.delete(idea_id)
    logger.info(f"Idea deleted: {idea_id}", extra={"tenant_id": ctx.tenant_id})
    return None


# ============================================================================
# CUSTOMER LINKS
# ============================================================================

@router.get("/{idea_id}/customers", response_model=List[CustomerResponse])
async def list_idea_customers(idea_id: str, ctx: RequestContext = Depends(get_request_context)):
    await fetch_owned(ctx, ctx.stores.ideas, idea_id, "idea")
    customer_ids = await ctx.stores.idea_customers.list_by_owner(idea_id)
    return await load_linked(ctx, ctx.stores.customers, customer_ids)


@router.post("/{idea_id}/customers/{customer_id}", status_code=status.HTTP_204_NO_CONTENT)
async def add_idea_customer(idea_id: str, customer_id: str, ctx: RequestContext = Depends(get_write_context)):
    """Link a customer. Linking twice is fine."""
    await fetch_owned(ctx, ctx.stores.ideas, idea_id, "idea")
    await fetch_owned(ctx, ctx.stores.customers, customer_id, "customer")
    await ctx.stores.idea_customers.add(idea_id, customer_id)
    return None


@router.delete("/{idea_id}/customers/{customer_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_idea_customer(idea_id: str, customer_id: str, ctx: RequestContext = Depends(get_write_context)):
    """Unlink a customer. Unlinking a customer that is not linked is fine."""
    await fetch_owned(ctx, ctx.stores.ideas, idea_id, "idea")
    await ctx.stores.idea_customers.remove(idea_id, customer_id)
    return None
