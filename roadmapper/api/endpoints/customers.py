"""
Customer Endpoints

Customers are listed alphabetically by default. Deleting one unlinks it
from every idea and feedback item first.
"""
from fastapi import APIRouter, Depends, Query, status
from typing import List, Optional

from roadmapper.api.deps import get_list_options, get_request_context, get_write_context, list_context, with_filters
from roadmapper.api.endpoints.common import fetch_owned
from roadmapper.core.context import RequestContext
from roadmapper.data.records import ListOptions
from roadmapper.schemas.customer import CustomerCreate, CustomerResponse, CustomerStatus, CustomerUpdate
from roadmapper.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/customers", tags=["customers"])


@router.get("", response_model=List[CustomerResponse])
async def list_customers(
    status_filter: Optional[CustomerStatus] = Query(None, alias="status"),
    options: ListOptions = Depends(get_list_options),
    ctx: Optional[RequestContext] = Depends(list_context("customers.list")),
):
    if ctx is None:
        return []
    options = with_filters(options, status=status_filter.value if status_filter else None)
    return await ctx.stores.customers.find_by_tenant_with_options(ctx.tenant_id, options)


@router.get("/{customer_id}", response_model=CustomerResponse)
async def get_customer(customer_id: str, ctx: RequestContext = Depends(get_request_context)):
    return await fetch_owned(ctx, ctx.stores.customers, customer_id, "customer")


@router.post("", response_model=CustomerResponse, status_code=status.HTTP_201_CREATED)
async def create_customer(customer_data: CustomerCreate, ctx: RequestContext = Depends(get_write_context)):
    """Create a customer. Revenue may be sent as a currency string ("$1,234.56")."""
    customer = await ctx.stores.customers.create({**customer_data.model_dump(), "tenant_id": ctx.tenant_id})
    logger.info(f"Customer created: {customer['id']}", extra={"tenant_id": ctx.tenant_id})
    return customer


@router.put("/{customer_id}", response_model=CustomerResponse)
async def update_customer(customer_id: str, customer_data: CustomerUpdate, ctx: RequestContext = Depends(get_write_context)):
    await fetch_owned(ctx, ctx.stores.customers, customer_id, "customer")
    return await ctx.stores.customers.update(customer_id, customer_data.model_dump(exclude_unset=True))


@router.delete("/{customer_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_customer(customer_id: str, ctx: RequestContext = Depends(get_write_context)):
    await fetch_owned(ctx, ctx.stores.customers, customer_id, "customer")
    await ctx.stores.idea_customers.remove_all_for_related(customer_id)
    await ctx.stores.feedback_customers.remove_all_for_related(customer_id)
    await ctx.stores.customers.delete(customer_id)
    logger.info(f"Customer deleted: {customer_id}", extra={"tenant_id": ctx.tenant_id})
    return None
