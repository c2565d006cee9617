"""
Record Store

Generic CRUD for one table on top of the query builder.

TENANT ISOLATION CONTRACT:
- find_by_tenant_with_options / count_by_tenant / find_one_for_tenant /
  delete_where always carry a tenant_id condition. List endpoints must use
  these and nothing else.
- find_by_id, find_one, update and delete are NOT tenant-scoped. Handlers
  must fetch the row first and compare its tenant_id with the request's
  tenant (RequestContext.require_owned) before using or mutating it.
  The fetch and the mutation share the request transaction.
"""
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from roadmapper.core.exceptions import InvalidColumnError, TenantIsolationError
from roadmapper.core.validation import RecordValidator
from roadmapper.data.query import Query, QueryBuilder, TableSpec
from roadmapper.database import Executor
from roadmapper.utils.logging import get_logger

logger = get_logger(__name__)

Record = Dict[str, Any]

# Largest OFFSET a list query is built with
MAX_OFFSET = 1_000_000


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ListOptions:
    """Client-controlled part of a list query."""
    filters: Mapping[str, Any] = field(default_factory=dict)
    search: Optional[str] = None
    sort: Optional[str] = None
    order: Optional[str] = None
    limit: Optional[int] = None
    offset: int = 0

    def bounded(self, default_limit: int, max_limit: int, max_offset: int = MAX_OFFSET) -> "ListOptions":
        """Apply the default page size, clamp to max_limit and keep offset within [0, max_offset]."""
        limit = default_limit if self.limit is None else int(self.limit)
        limit = max(1, min(limit, max_limit))
        offset = max(0, min(int(self.offset or 0), max_offset))
        return replace(self, limit=limit, offset=offset)


class RecordStore:
    """CRUD for one table, bound to the request's executor."""

    def __init__(
        self,
        executor: Executor,
        spec: TableSpec,
        validator: Optional[RecordValidator] = None,
        default_page_size: int = 50,
        max_page_size: int = 100,
        max_offset: int = MAX_OFFSET,
    ):
        self.executor = executor
        self.spec = spec
        self.validator = validator
        self.default_page_size = default_page_size
        self.max_page_size = max_page_size
        self.max_offset = max_offset
        self.builder = QueryBuilder(spec, executor.dialect_name)

    @property
    def table(self) -> str:
        return self.spec.name

    async def _fetch_all(self, query: Query) -> List[Record]:
        result = await self.executor.execute(query.statement())
        return [dict(row._mapping) for row in result]

    async def _fetch_one(self, query: Query) -> Optional[Record]:
        rows = await self._fetch_all(query)
        return rows[0] if rows else None

    def _tenant_filters(self, tenant_id: str, filters: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
        if not self.spec.tenant_column:
            raise TenantIsolationError(f"{self.table} is not a tenant-scoped table")
        scoped = dict(filters or {})
        scoped[self.spec.tenant_column] = tenant_id
        return scoped

    # ------------------------------------------------------------------
    # writes
    # ------------------------------------------------------------------

    async def create(self, data: Mapping[str, Any]) -> Record:
        """
        Validate and insert a row, returning it as stored.

        Raises RecordValidationError before anything is written.
        """
        values = self.validator.validate_for_create(data) if self.validator else dict(data)

        if not values.get(self.spec.primary_key):
            values[self.spec.primary_key] = str(uuid.uuid4())
        now = utcnow()
        for column in ("created_at", "updated_at"):
            if self.spec.has_column(column) and values.get(column) is None:
                values[column] = now

        record = await self._fetch_one(self.builder.insert(values))
        logger.debug(f"Created {self.table} record {values[self.spec.primary_key]}")
        return record

    async def update(self, record_id: str, data: Mapping[str, Any]) -> Optional[Record]:
        """
        Apply a partial update. Returns the new row, or None if it is gone.

        NOT tenant-scoped: verify ownership of the pre-image first.
        The primary key and tenant column can never be changed.
        """
        values = self.validator.validate_for_update(data) if self.validator else dict(data)
        values.pop(self.spec.primary_key, None)
        if self.spec.tenant_column:
            values.pop(self.spec.tenant_column, None)

        if self.spec.has_column("updated_at"):
            values["updated_at"] = utcnow()
        if not values:
            return await self.find_by_id(record_id)

        return await self._fetch_one(self.builder.update(record_id, values))

    async def delete(self, record_id: str) -> bool:
        """Hard delete by id. NOT tenant-scoped."""
        deleted = await self._fetch_all(self.builder.delete(record_id))
        if deleted:
            logger.debug(f"Deleted {self.table} record {record_id}")
        return bool(deleted)

    async def delete_where(self, tenant_id: str, filters: Mapping[str, Any]) -> int:
        """Delete every row of the tenant matching filters. Returns the number removed."""
        query = self.builder.delete_where(self._tenant_filters(tenant_id, filters))
        return len(await self._fetch_all(query))

    # ------------------------------------------------------------------
    # reads
    # ------------------------------------------------------------------

    async def find_all(
        self,
        filters: Optional[Mapping[str, Any]] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[Record]:
        """
        Rows matching filters (AND), default order.

        For narrow lookups whose filters are already tenant-scoped (for
        example ids taken from a junction of a verified row). List endpoints
        use find_by_tenant_with_options instead.
        """
        return await self._fetch_all(self.builder.select(filters, limit=limit, offset=offset))

    async def find_by_tenant_with_options(self, tenant_id: str, options: Optional[ListOptions] = None) -> List[Record]:
        """
        The list chokepoint: tenant filter, client filters, search, sort, paging.

        Filters must be on the table's filterable allow-list. The page size is
        clamped to max_page_size and the offset to max_offset whatever the
        client asked for.
        """
        options = (options or ListOptions()).bounded(self.default_page_size, self.max_page_size, self.max_offset)
        unknown = set(options.filters) - set(self.spec.filterable)
        if unknown:
            raise InvalidColumnError(f"Filters not allowed on {self.table}: {sorted(unknown)}")

        query = self.builder.select(
            self._tenant_filters(tenant_id, options.filters),
            search=options.search,
            sort=options.sort,
            order=options.order,
            limit=options.limit,
            offset=options.offset,
            require_tenant=True,
        )
        return await self._fetch_all(query)

    async def count_by_tenant(self, tenant_id: str, options: Optional[ListOptions] = None) -> int:
        options = options or ListOptions()
        query = self.builder.count(
            self._tenant_filters(tenant_id, options.filters),
            search=options.search,
            require_tenant=True,
        )
        result = await self.executor.execute(query.statement())
        return int(result.scalar_one())

    async def find_by_id(self, record_id: str) -> Optional[Record]:
        """Single row by primary key. NOT tenant-scoped: compare tenant_id before use."""
        return await self._fetch_one(self.builder.select_by_id(record_id))

    async def find_one(self, filters: Mapping[str, Any]) -> Optional[Record]:
        """First row matching filters. NOT tenant-scoped unless filters say so."""
        if not filters:
            raise ValueError("find_one needs at least one filter")
        return await self._fetch_one(self.builder.select(filters, limit=1))

    async def find_one_for_tenant(self, tenant_id: str, filters: Mapping[str, Any]) -> Optional[Record]:
        """Natural-key lookup inside one tenant (e.g. user by e-mail)."""
        query = self.builder.select(self._tenant_filters(tenant_id, filters), limit=1, require_tenant=True)
        return await self._fetch_one(query)

    async def count(self, filters: Optional[Mapping[str, Any]] = None, search: Optional[str] = None) -> int:
        result = await self.executor.execute(self.builder.count(filters, search=search).statement())
        return int(result.scalar_one())
