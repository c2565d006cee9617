"""
API Dependencies

Reusable FastAPI dependencies: the request transaction, the optional
principal, tenant resolution and the RequestContext built from them.

PATTERN: FastAPI caches a dependency per request, so the connection, the
stores and the resolution below are created once per request however many
dependencies ask for them.
"""
from dataclasses import replace
from typing import AsyncIterator, Optional

from fastapi import Depends, Query, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncConnection

from roadmapper.config import get_settings
from roadmapper.core.context import Principal, RequestContext
from roadmapper.core.exceptions import (
    AuthenticationError,
    PermissionDenied,
    PlanUpgradeRequired,
    TenantNotFoundError,
)
from roadmapper.core.security import decode_access_token
from roadmapper.core.tenancy import Resolution, TenantDirectory, TenantResolver, TenantSignals
from roadmapper.core.tenant_cache import TenantCache
from roadmapper.data.records import ListOptions
from roadmapper.data.registry import Stores
from roadmapper.database import Executor, get_connection
from roadmapper.utils.logging import get_logger, log_security_event

logger = get_logger(__name__)
settings = get_settings()

# auto_error=False: anonymous requests are allowed to reach tenant resolution
bearer_scheme = HTTPBearer(auto_error=False)


async def get_executor(conn: AsyncConnection = Depends(get_connection)) -> AsyncIterator[Executor]:
    """
    The request's connection, bounded by REQUEST_TIMEOUT_SECONDS from now.

    Commits once the handler has returned and then runs the executor's
    after-commit callbacks. When the handler raises, nothing is committed
    and get_connection rolls back.
    """
    executor = Executor.with_timeout(conn, settings.REQUEST_TIMEOUT_SECONDS)
    yield executor
    await executor.commit()


async def get_stores(executor: Executor = Depends(get_executor)) -> Stores:
    return Stores.bind(executor)


def get_tenant_cache(request: Request) -> Optional[TenantCache]:
    """Set up in the application lifespan. Absent when caching is disabled."""
    return getattr(request.app.state, "tenant_cache", None)


async def get_tenant_directory(
    stores: Stores = Depends(get_stores),
    cache: Optional[TenantCache] = Depends(get_tenant_cache),
) -> TenantDirectory:
    return TenantDirectory(stores.tenants, cache)


async def get_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    stores: Stores = Depends(get_stores),
) -> Optional[Principal]:
    """
    Authenticated user, or None for anonymous requests.

    A token that is present but invalid is an error, not "anonymous".
    The user is re-loaded so deleted users and role changes take effect
    before the token expires.
    """
    if credentials is None:
        return None

    payload = decode_access_token(credentials.credentials)
    if not payload:
        log_security_event("invalid_token", {"reason": "decode_failed"}, logger)
        raise AuthenticationError("Invalid or expired token")

    user = await stores.users.find_by_id(payload["sub"])
    if not user or user["tenant_id"] != payload["tenant_id"]:
        log_security_event(
            "invalid_token",
            {"reason": "user_not_in_tenant", "user_id": payload["sub"], "tenant_id": payload["tenant_id"]},
            logger
        )
        raise AuthenticationError("User not found")

    return Principal.from_record(user)


async def get_resolution(
    request: Request,
    principal: Optional[Principal] = Depends(get_principal),
    directory: TenantDirectory = Depends(get_tenant_directory),
) -> Resolution:
    signals = await TenantSignals.from_request(
        request,
        context_tenant_id=principal.tenant_id if principal else None,
    )
    return await TenantResolver(directory).resolve(signals)


async def get_request_context(
    request: Request,
    resolution: Resolution = Depends(get_resolution),
    stores: Stores = Depends(get_stores),
    principal: Optional[Principal] = Depends(get_principal),
) -> RequestContext:
    """RequestContext for endpoints where an unknown tenant is a 404."""
    if not resolution:
        logger.info(
            f"Tenant not resolved for {request.method} {request.url.path}",
            extra={"path": request.url.path, "method": request.method}
        )
        raise TenantNotFoundError()
    return RequestContext(tenant=resolution, stores=stores, principal=principal)


def list_context(endpoint: str):
    """
    RequestContext dependency for a list endpoint.

    Resolves to None (the endpoint answers []) when no tenant was found and
    the endpoint is on SOFT_TENANT_ENDPOINTS. Otherwise behaves like
    get_request_context.
    """

    async def dependency(
        request: Request,
        resolution: Resolution = Depends(get_resolution),
        stores: Stores = Depends(get_stores),
        principal: Optional[Principal] = Depends(get_principal),
    ) -> Optional[RequestContext]:
        if resolution:
            return RequestContext(tenant=resolution, stores=stores, principal=principal)
        if endpoint in settings.SOFT_TENANT_ENDPOINTS:
            logger.debug(f"Tenant not resolved for {endpoint}, returning empty list")
            return None
        return await get_request_context(request, resolution, stores, principal)

    return dependency


async def get_write_context(ctx: RequestContext = Depends(get_request_context)) -> RequestContext:
    """Context for mutating endpoints. Requires a principal unless disabled in settings."""
    if settings.REQUIRE_AUTH_FOR_WRITES and ctx.principal is None:
        raise AuthenticationError("Authentication required")
    return ctx


async def require_principal(ctx: RequestContext = Depends(get_request_context)) -> Principal:
    if ctx.principal is None:
        raise AuthenticationError("Authentication required")
    return ctx.principal


async def get_admin_context(ctx: RequestContext = Depends(get_request_context)) -> RequestContext:
    """Admin-only endpoints."""
    if ctx.principal is None:
        raise AuthenticationError("Authentication required")
    if not ctx.principal.is_admin:
        raise PermissionDenied("Admin privileges required")
    return ctx


def require_plan_tier(*allowed_tiers: str):
    """
    Gate an endpoint on the tenant's plan tier.

    Uses the tenant row cached on the resolution, no extra query.
    """

    async def dependency(ctx: RequestContext = Depends(get_request_context)) -> RequestContext:
        if ctx.plan_tier not in allowed_tiers:
            logger.info(
                f"Plan tier {ctx.plan_tier} lacks access, requires {allowed_tiers}",
                extra={"tenant_id": ctx.tenant_id}
            )
            raise PlanUpgradeRequired(allowed_tiers)
        return ctx

    return dependency


def get_list_options(
    sort: Optional[str] = Query(None, description="Column, optionally 'column:asc|desc'"),
    order: Optional[str] = Query(None, description="asc or desc"),
    limit: Optional[int] = Query(None, description="Page size, capped at MAX_PAGE_SIZE"),
    offset: Optional[int] = Query(None, ge=0, le=settings.MAX_OFFSET),
    page: Optional[int] = Query(
        None, ge=1, le=settings.MAX_OFFSET, description="1-based page, used when offset is absent"
    ),
    search: Optional[str] = Query(None, max_length=200),
) -> ListOptions:
    """Generic list parameters. Entity filters are added by each endpoint."""
    if sort and ":" in sort:
        sort, _, direction = sort.partition(":")
        order = order or direction

    if offset is None and page and page > 1:
        per_page = limit if limit and limit > 0 else settings.DEFAULT_PAGE_SIZE
        offset = min((page - 1) * min(per_page, settings.MAX_PAGE_SIZE), settings.MAX_OFFSET)

    return ListOptions(
        search=search,
        sort=sort or None,
        order=order,
        limit=limit,
        offset=offset or 0,
    )


def with_filters(options: ListOptions, **filters) -> ListOptions:
    """Attach the entity filters the client actually sent."""
    return replace(options, filters={key: value for key, value in filters.items() if value is not None})
