"""
Feedback Endpoints

CRUD for feedback plus its links to customers (feedback_customers) and
initiatives (feedback_initiatives). Same isolation rules as ideas: every
id is tenant-checked before it reaches a junction table.
"""
from fastapi import APIRouter, Depends, Query, status
from typing import List, Optional

from roadmapper.api.deps import get_list_options, get_request_context, get_write_context, list_context, with_filters
from roadmapper.api.endpoints.common import fetch_owned, load_linked, verify_owned_ids
from roadmapper.core.context import RequestContext
from roadmapper.data.records import ListOptions
from roadmapper.schemas.customer import CustomerResponse
from roadmapper.schemas.feedback import (
    FeedbackCreate,
    FeedbackDetailResponse,
    FeedbackResponse,
    FeedbackUpdate,
    Sentiment,
)
from roadmapper.schemas.initiative import InitiativeResponse
from roadmapper.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/feedback", tags=["feedback"])

LINK_FIELDS = {"customer_ids", "initiative_ids"}


async def _detail(ctx: RequestContext, feedback: dict) -> dict:
    customer_ids = await ctx.stores.feedback_customers.list_by_owner(feedback["id"])
    initiative_ids = await ctx.stores.feedback_initiatives.list_by_owner(feedback["id"])
    return {
        **feedback,
        "customers": await load_linked(ctx, ctx.stores.customers, customer_ids),
        "initiatives": await load_linked(ctx, ctx.stores.initiatives, initiative_ids),
    }


@router.get("", response_model=List[FeedbackResponse])
async def list_feedback(
    sentiment: Optional[Sentiment] = None,
    customer_id: Optional[str] = None,
    initiative_id: Optional[str] = None,
    options: ListOptions = Depends(get_list_options),
    ctx: Optional[RequestContext] = Depends(list_context("feedback.list")),
):
    """List feedback. search matches title or description, case-insensitively."""
    if ctx is None:
        return []
    options = with_filters(
        options,
        sentiment=sentiment.value if sentiment else None,
        customer_id=customer_id,
        initiative_id=initiative_id,
    )
    return await ctx.stores.feedback.find_by_tenant_with_options(ctx.tenant_id, options)


@router.get("/{feedback_id}", response_model=FeedbackDetailResponse)
async def get_feedback(feedback_id: str, ctx: RequestContext = Depends(get_request_context)):
    feedback = await fetch_owned(ctx, ctx.stores.feedback, feedback_id, "feedback")
    return await _detail(ctx, feedback)


@router.post("", response_model=FeedbackDetailResponse, status_code=status.HTTP_201_CREATED)
async def create_feedback(feedback_data: FeedbackCreate, ctx: RequestContext = Depends(get_write_context)):
    customer_ids = await verify_owned_ids(ctx, ctx.stores.customers, feedback_data.customer_ids, "customer")
    initiative_ids = await verify_owned_ids(ctx, ctx.stores.initiatives, feedback_data.initiative_ids, "initiative")

    feedback = await ctx.stores.feedback.create(
        {**feedback_data.model_dump(exclude=LINK_FIELDS), "tenant_id": ctx.tenant_id}
    )
    await ctx.stores.feedback_customers.replace(feedback["id"], customer_ids)
    await ctx.stores.feedback_initiatives.replace(feedback["id"], initiative_ids)

    logger.info(f"Feedback created: {feedback['id']}", extra={"tenant_id": ctx.tenant_id})
    return await _detail(ctx, feedback)


@router.put("/{feedback_id}", response_model=FeedbackDetailResponse)
async def update_feedback(
    feedback_id: str,
    feedback_data: FeedbackUpdate,
    ctx: RequestContext = Depends(get_write_context),
):
    await fetch_owned(ctx, ctx.stores.feedback, feedback_id, "feedback")
    feedback = await ctx.stores.feedback.update(
        feedback_id, feedback_data.model_dump(exclude_unset=True, exclude=LINK_FIELDS)
    )

    if feedback_data.customer_ids is not None:
        customer_ids = await verify_owned_ids(ctx, ctx.stores.customers, feedback_data.customer_ids, "customer")
        await ctx.stores.feedback_customers.replace(feedback_id, customer_ids)
    if feedback_data.initiative_ids is not None:
        initiative_ids = await verify_owned_ids(
            ctx, ctx.stores.initiatives, feedback_data.initiative_ids, "initiative"
        )
        await ctx.stores.feedback_initiatives.replace(feedback_id, initiative_ids)

    return await _detail(ctx, feedback)


@router.delete("/{feedback_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_feedback(feedback_id: str, ctx: RequestContext = Depends(get_write_context)):
    await fetch_owned(ctx, ctx.stores.feedback, feedback_id, "feedback")
    await ctx.stores.feedback_customers.remove_all(feedback_id)
    await ctx.stores.feedback_initiatives.remove_all(feedback_id)
    await ctx.stores.comments.delete_where(ctx.tenant_id, {"entity_type": "feedback", "entity_id": feedback_id})
    await ctx.stores.feedback.delete(feedback_id)
    logger.info(f"Feedback deleted: {feedback_id}", extra={"tenant_id": ctx.tenant_id})
    return None


# ============================================================================
# LINKS
# ============================================================================

@router.get("/{feedback_id}/customers", response_model=List[CustomerResponse])
async def list_feedback_customers(feedback_id: str, ctx: RequestContext = Depends(get_request_context)):
    await fetch_owned(ctx, ctx.stores.feedback, feedback_id, "feedback")
    customer_ids = await ctx.stores.feedback_customers.list_by_owner(feedback_id)
    return await load_linked(ctx, ctx.stores.customers, customer_ids)


@router.post("/{feedback_id}/customers/{customer_id}", status_code=status.HTTP_204_NO_CONTENT)
async def add_feedback_customer(feedback_id: str, customer_id: str, ctx: RequestContext = Depends(get_write_context)):
    await fetch_owned(ctx, ctx.stores.feedback, feedback_id, "feedback")
    await fetch_owned(ctx, ctx.stores.customers, customer_id, "customer")
    await ctx.stores.feedback_customers.add(feedback_id, customer_id)
    return None


@router.delete("/{feedback_id}/customers/{customer_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_feedback_customer(
    feedback_id: str,
    customer_id: str,
    ctx: RequestContext = Depends(get_write_context),
):
    await fetch_owned(ctx, ctx.stores.feedback, feedback_id, "feedback")
    await ctx.stores.feedback_customers.remove(feedback_id, customer_id)
    return None


@router.get("/{feedback_id}/initiatives", response_model=List[InitiativeResponse])
async def list_feedback_initiatives(feedback_id: str, ctx: RequestContext = Depends(get_request_context)):
    await fetch_owned(ctx, ctx.stores.feedback, feedback_id, "feedback")
    initiative_ids = await ctx.stores.feedback_initiatives.list_by_owner(feedback_id)
    return await load_linked(ctx, ctx.stores.initiatives, initiative_ids)


@router.post("/{feedback_id}/initiatives/{initiative_id}", status_code=status.HTTP_204_NO_CONTENT)
async def add_feedback_initiative(
    feedback_id: str,
    initiative_id: str,
    ctx: RequestContext = Depends(get_write_context),
):
    await fetch_owned(ctx, ctx.stores.feedback, feedback_id, "feedback")
    await fetch_owned(ctx, ctx.stores.initiatives, initiative_id, "initiative")
    await ctx.stores.feedback_initiatives.add(feedback_id, initiative_id)
    return None


@router.delete("/{feedback_id}/initiatives/{initiative_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_feedback_initiative(
    feedback_id: str,
    initiative_id: str,
    ctx: RequestContext = Depends(get_write_context),
):
    await fetch_owned(ctx, ctx.stores.feedback, feedback_id, "feedback")
    await ctx.stores.feedback_initiatives.remove(feedback_id, initiative_id)
    return None
