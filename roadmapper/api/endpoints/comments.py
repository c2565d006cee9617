"""
Comment Endpoints

Comments on ideas, feedback and initiatives.

RBAC:
- List: anyone in the tenant
- Create: authenticated users
- Edit/delete: the comment's author or an admin
"""
from fastapi import APIRouter, Depends, Query, status
from typing import List, Optional

from roadmapper.api.deps import get_list_options, get_request_context, require_principal, with_filters
from roadmapper.api.endpoints.common import fetch_owned, load_linked
from roadmapper.core.context import Principal, RequestContext
from roadmapper.core.exceptions import PermissionDenied
from roadmapper.data.records import ListOptions
from roadmapper.schemas.comment import CommentCreate, CommentEntityType, CommentResponse, CommentUpdate
from roadmapper.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/comments", tags=["comments"])

# entity_type -> attribute on Stores
COMMENTABLE = {
    CommentEntityType.IDEA.value: "ideas",
    CommentEntityType.FEEDBACK.value: "feedback",
    CommentEntityType.INITIATIVE.value: "initiatives",
}


class CommentWithAuthorResponse(CommentResponse):
    author_name: Optional[str] = None


async def _check_target(ctx: RequestContext, entity_type: str, entity_id: str) -> None:
    store = getattr(ctx.stores, COMMENTABLE[entity_type])
    await fetch_owned(ctx, store, entity_id, entity_type)


def _can_modify(principal: Principal, comment: dict) -> bool:
    return principal.is_admin or comment["user_id"] == principal.user_id


@router.get("", response_model=List[CommentWithAuthorResponse])
async def list_comments(
    entity_type: CommentEntityType,
    entity_id: str,
    options: ListOptions = Depends(get_list_options),
    ctx: RequestContext = Depends(get_request_context),
):
    """Comments on one idea/feedback/initiative, oldest first, with author names."""
    await _check_target(ctx, entity_type.value, entity_id)

    options = with_filters(options, entity_type=entity_type.value, entity_id=entity_id)
    comments = await ctx.stores.comments.find_by_tenant_with_options(ctx.tenant_id, options)

    authors = await load_linked(ctx, ctx.stores.users, sorted({c["user_id"] for c in comments}))
    names = {user["id"]: user["name"] for user in authors}
    return [{**comment, "author_name": names.get(comment["user_id"])} for comment in comments]


@router.post("", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
async def create_comment(
    comment_data: CommentCreate,
    principal: Principal = Depends(require_principal),
    ctx: RequestContext = Depends(get_request_context),
):
    await _check_target(ctx, comment_data.entity_type, comment_data.entity_id)
    comment = await ctx.stores.comments.create({
        **comment_data.model_dump(),
        "tenant_id": ctx.tenant_id,
        "user_id": principal.user_id,
    })
    logger.info(
        f"Comment {comment['id']} added to {comment_data.entity_type} {comment_data.entity_id}",
        extra={"tenant_id": ctx.tenant_id, "user_id": principal.user_id}
    )
    return comment


@router.put("/{comment_id}", response_model=CommentResponse)
async def update_comment(
    comment_id: str,
    comment_data: CommentUpdate,
    principal: Principal = Depends(require_principal),
    ctx: RequestContext = Depends(get_request_context),
):
    comment = await fetch_owned(ctx, ctx.stores.comments, comment_id, "comment")
    if not _can_modify(principal, comment):
        raise PermissionDenied("Only the author or an admin can edit this comment")
    return await ctx.stores.comments.update(comment_id, comment_data.model_dump(exclude_unset=True))


@router.delete("/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_comment(
    comment_id: str,
    principal: Principal = Depends(require_principal),
    ctx: RequestContext = Depends(get_request_context),
):
    comment = await fetch_owned(ctx, ctx.stores.comments, comment_id, "comment")
    if not _can_modify(principal, comment):
        raise PermissionDenied("Only the author or an admin can delete this comment")
    await ctx.stores.comments.delete(comment_id)
    return None
