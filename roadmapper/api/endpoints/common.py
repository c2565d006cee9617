"""
Shared endpoint helpers

Fetch-then-compare and link-id verification used by every entity router.
"""
from typing import Any, Dict, Iterable, List

from roadmapper.core.context import RequestContext
from roadmapper.core.exceptions import InvalidInputError
from roadmapper.data.query import unique
from roadmapper.data.records import RecordStore


async def fetch_owned(ctx: RequestContext, store: RecordStore, record_id: str, entity: str) -> Dict[str, Any]:
    """
    Load a row by id and make sure it belongs to the request's tenant.

    find_by_id is not tenant-scoped, so this comparison is mandatory before
    the row is returned, updated or deleted. A foreign row is a 404.
    """
    return ctx.require_owned(await store.find_by_id(record_id), entity)


async def verify_owned_ids(ctx: RequestContext, store: RecordStore, ids: Iterable[str], entity: str) -> List[str]:
    """
    Check that every id names a row of this tenant before it is linked.

    Unknown and foreign ids get the same 400 so the response says nothing
    about other tenants.
    """
    wanted = unique(ids)
    if not wanted:
        return []

    rows = await store.find_all({"tenant_id": ctx.tenant_id, "id": wanted})
    found = {row["id"] for row in rows}
    for record_id in wanted:
        if record_id not in found:
            raise InvalidInputError(f"Invalid {entity} id: {record_id}")
    return wanted


async def load_linked(ctx: RequestContext, store: RecordStore, ids: List[str]) -> List[Dict[str, Any]]:
    """Rows for ids read from a junction, still filtered by tenant."""
    if not ids:
        return []
    return await store.find_all({"tenant_id": ctx.tenant_id, "id": ids})
