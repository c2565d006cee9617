"""
User Management Endpoints

Users of the current tenant.

RBAC:
- Own profile (GET/PUT /users/me): any authenticated user, name only
- List, get, change role, delete: admins of the same tenant

Users of other tenants are a 404 like every other foreign row.
"""
from fastapi import APIRouter, Depends, Query, status
from typing import List, Optional

from roadmapper.api.deps import get_admin_context, get_list_options, get_stores, require_principal, with_filters
from roadmapper.api.endpoints.common import fetch_owned
from roadmapper.core.context import Principal, RequestContext
from roadmapper.core.exceptions import AuthenticationError, InvalidInputError
from roadmapper.data.records import ListOptions
from roadmapper.data.registry import Stores
from roadmapper.models.user import UserRole
from roadmapper.schemas.auth import UserResponse
from roadmapper.schemas.user import UserAdminUpdate, UserProfileUpdate
from roadmapper.utils.logging import get_logger, log_security_event

logger = get_logger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


@router.get("", response_model=List[UserResponse])
async def list_users(
    role: Optional[UserRole] = Query(None),
    options: ListOptions = Depends(get_list_options),
    ctx: RequestContext = Depends(get_admin_context),
):
    """List users of the current tenant, filterable by role. Admins only."""
    options = with_filters(options, role=role.value if role else None)
    return await ctx.stores.users.find_by_tenant_with_options(ctx.tenant_id, options)


@router.get("/me", response_model=UserResponse)
async def read_profile(principal: Principal = Depends(require_principal), stores: Stores = Depends(get_stores)):
    user = await stores.users.find_by_id(principal.user_id)
    if not user:
        raise AuthenticationError("User not found")
    return user


@router.put("/me", response_model=UserResponse)
async def update_profile(
    profile: UserProfileUpdate,
    principal: Principal = Depends(require_principal),
    stores: Stores = Depends(get_stores),
):
    user = await stores.users.update(principal.user_id, profile.model_dump(exclude_unset=True))
    if not user:
        raise AuthenticationError("User not found")
    return user


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(user_id: str, ctx: RequestContext = Depends(get_admin_context)):
    return await fetch_owned(ctx, ctx.stores.users, user_id, "user")


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(user_id: str, changes: UserAdminUpdate, ctx: RequestContext = Depends(get_admin_context)):
    """
    Rename a user or change their role.

    NOTE: Admins cannot change their own role, so a tenant always keeps the
    admin who is making changes.
    """
    user = await fetch_owned(ctx, ctx.stores.users, user_id, "user")
    data = changes.model_dump(exclude_unset=True)

    if "role" in data and user["id"] == ctx.principal.user_id and data["role"] != user["role"]:
        raise InvalidInputError("Cannot change your own role")

    updated = await ctx.stores.users.update(user_id, data)
    if updated["role"] != user["role"]:
        log_security_event(
            "user_role_changed",
            {
                "tenant_id": ctx.tenant_id,
                "user_id": ctx.principal.user_id,
                "target_user_id": user_id,
                "from": user["role"],
                "to": updated["role"],
            },
            logger
        )
    return updated


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(user_id: str, ctx: RequestContext = Depends(get_admin_context)):
    """
    Delete a user of the current tenant. Admins only.

    CAUTION: Hard delete. The user's comments go with it (ON DELETE CASCADE).
    """
    await fetch_owned(ctx, ctx.stores.users, user_id, "user")
    if user_id == ctx.principal.user_id:
        raise InvalidInputError("Cannot delete your own account")

    await ctx.stores.users.delete(user_id)
    logger.info(f"User deleted: {user_id} by {ctx.principal.user_id}", extra={"tenant_id": ctx.tenant_id})
    return None
