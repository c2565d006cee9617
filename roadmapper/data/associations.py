"""
Association Store

Many-to-many links kept in junction tables (ideas_customers,
feedback_customers, feedback_initiatives).

PRECONDITION: junction tables have no tenant_id. Callers must have
verified that BOTH ids belong to the request's tenant before calling
add / replace. Reads are safe as long as the owner id was verified.
"""
from dataclasses import dataclass
from typing import Iterable, List

from sqlalchemy import String

from roadmapper.data.query import Query, check_identifier, unique
from roadmapper.database import Executor
from roadmapper.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class JunctionSpec:
    table: str
    owner_column: str
    related_column: str

    def __post_init__(self):
        for name in (self.table, self.owner_column, self.related_column):
            check_identifier(name)


class AssociationStore:
    """Idempotent add/remove and listing for one junction table."""

    def __init__(self, executor: Executor, spec: JunctionSpec):
        self.executor = executor
        self.spec = spec

    def _query(self, sql: str, *values: str, returning: str) -> Query:
        return Query(
            sql,
            parameters=list(values),
            types=[String()] * len(values),
            result_columns={returning: String()},
        )

    async def _ids(self, query: Query) -> List[str]:
        result = await self.executor.execute(query.statement())
        return [row[0] for row in result]

    async def add(self, owner_id: str, related_id: str) -> bool:
        """
        Link two rows. Re-adding an existing pair is a no-op.

        Returns True only when a new row was inserted.
        """
        s = self.spec
        sql = (
            f"INSERT INTO {s.table} ({s.owner_column}, {s.related_column}) VALUES (:p1, :p2) "
            f"ON CONFLICT ({s.owner_column}, {s.related_column}) DO NOTHING "
            f"RETURNING {s.owner_column}"
        )
        inserted = await self._ids(self._query(sql, owner_id, related_id, returning=s.owner_column))
        return bool(inserted)

    async def remove(self, owner_id: str, related_id: str) -> bool:
        """Unlink two rows. Removing a missing pair is not an error."""
        s = self.spec
        sql = (
            f"DELETE FROM {s.table} WHERE {s.owner_column} = :p1 AND {s.related_column} = :p2 "
            f"RETURNING {s.owner_column}"
        )
        removed = await self._ids(self._query(sql, owner_id, related_id, returning=s.owner_column))
        return bool(removed)

    async def remove_all(self, owner_id: str) -> int:
        s = self.spec
        sql = f"DELETE FROM {s.table} WHERE {s.owner_column} = :p1 RETURNING {s.related_column}"
        return len(await self._ids(self._query(sql, owner_id, returning=s.related_column)))

    async def remove_all_for_related(self, related_id: str) -> int:
        """Drop every link pointing at related_id (used when that row is deleted)."""
        s = self.spec
        sql = f"DELETE FROM {s.table} WHERE {s.related_column} = :p1 RETURNING {s.owner_column}"
        return len(await self._ids(self._query(sql, related_id, returning=s.owner_column)))

    async def list_by_owner(self, owner_id: str) -> List[str]:
        s = self.spec
        sql = f"SELECT {s.related_column} FROM {s.table} WHERE {s.owner_column} = :p1 ORDER BY {s.related_column}"
        return await self._ids(self._query(sql, owner_id, returning=s.related_column))

    async def list_by_related(self, related_id: str) -> List[str]:
        s = self.spec
        sql = f"SELECT {s.owner_column} FROM {s.table} WHERE {s.related_column} = :p1 ORDER BY {s.owner_column}"
        return await self._ids(self._query(sql, related_id, returning=s.owner_column))

    async def replace(self, owner_id: str, related_ids: Iterable[str]) -> List[str]:
        """
        Make related_ids the complete set of links for owner_id.

        Clear then re-insert. Both steps run in the caller's transaction, so a
        failure half way leaves the previous links in place.
        """
        wanted = unique(related_ids)
        await self.remove_all(owner_id)
        for related_id in wanted:
            await self.add(owner_id, related_id)
        logger.debug(f"Replaced {self.spec.table} links for {owner_id}: {len(wanted)} linked")
        return wanted
