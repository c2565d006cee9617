"""
Tenant Endpoints

The current tenant, its plan tier and usage figures.
"""
from fastapi import APIRouter, Depends

from roadmapper.api.deps import get_admin_context, get_request_context, get_tenant_directory, require_plan_tier
from roadmapper.core.context import RequestContext
from roadmapper.core.exceptions import TenantNotFoundError
from roadmapper.core.tenancy import TenantDirectory
from roadmapper.schemas.tenant import TenantPlanUpdate, TenantResponse, TenantUsageResponse
from roadmapper.utils.logging import get_logger, log_security_event

logger = get_logger(__name__)

router = APIRouter(prefix="/tenants", tags=["tenants"])

COUNTED_ENTITIES = ("goals", "initiatives", "ideas", "feedback", "customers", "comments", "users")


@router.get("/current", response_model=TenantResponse)
async def get_current_tenant(ctx: RequestContext = Depends(get_request_context)):
    if not ctx.tenant.tenant:
        raise TenantNotFoundError()
    return ctx.tenant.tenant


@router.put("/current/plan", response_model=TenantResponse)
async def update_plan_tier(
    plan: TenantPlanUpdate,
    ctx: RequestContext = Depends(get_admin_context),
    directory: TenantDirectory = Depends(get_tenant_directory),
):
    """Change the plan tier (admins only). Billing integration lives elsewhere."""
    tenant = ctx.tenant.tenant
    if not tenant:
        raise TenantNotFoundError()

    updated = await directory.update_plan_tier(tenant, plan.plan_tier)
    log_security_event(
        "plan_tier_changed",
        {
            "tenant_id": ctx.tenant_id,
            "user_id": ctx.principal.user_id,
            "from": tenant["plan_tier"],
            "to": updated["plan_tier"],
        },
        logger
    )
    return updated


@router.get("/current/usage", response_model=TenantUsageResponse)
async def get_usage(ctx: RequestContext = Depends(require_plan_tier("pro", "enterprise"))):
    """Row counts per entity. Available on pro and enterprise plans."""
    counts = {}
    for name in COUNTED_ENTITIES:
        store = getattr(ctx.stores, name)
        counts[name] = await store.count_by_tenant(ctx.tenant_id)
    return TenantUsageResponse(tenant_id=ctx.tenant_id, plan_tier=ctx.plan_tier, counts=counts)
