"""
Query Builder

Turns a structured filter / search / sort / pagination request into
parameterized SQL for one table.

SECURITY RULES (every method follows them):
- Values are NEVER interpolated. Each one becomes a numbered bind
  parameter (:p1, :p2, ...) and is recorded in Query.parameters in order.
- Identifiers (table, columns, sort keys, filter keys) are interpolated,
  but only after they have been checked against the TableSpec allow-list.
- Unknown sort keys fall back to the table's default sort. Unknown filter
  keys are an error, since silently dropping a filter widens the result.
"""
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional

from sqlalchemy import Integer, String, Table, bindparam, text
from sqlalchemy.sql.elements import TextClause
from sqlalchemy.types import TypeEngine

from roadmapper.core.exceptions import InvalidColumnError, TenantIsolationError

IDENTIFIER = re.compile(r"^[a-z_][a-z0-9_]*$")

SORT_ORDERS = ("asc", "desc")


def check_identifier(name: str) -> str:
    if not isinstance(name, str) or not IDENTIFIER.match(name):
        raise InvalidColumnError(f"Invalid SQL identifier: {name!r}")
    return name


def escape_like(term: str) -> str:
    """Escape LIKE wildcards so user input only ever matches literally."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


@dataclass(frozen=True)
class Membership:
    """
    A filter answered through a junction table.

    Filtering ideas by customer_id becomes:
        id IN (SELECT idea_id FROM ideas_customers WHERE customer_id = :p)
    """
    table: str
    owner_column: str
    related_column: str

    def __post_init__(self):
        for name in (self.table, self.owner_column, self.related_column):
            check_identifier(name)


@dataclass(frozen=True)
class TableSpec:
    """
    Allow-lists for one table.

    columns is the complete set of column identifiers that may appear in
    SQL. sortable, filterable and searchable are subsets exposed to clients.
    """
    name: str
    columns: Mapping[str, TypeEngine]
    primary_key: str = "id"
    tenant_column: Optional[str] = "tenant_id"
    sortable: frozenset = frozenset()
    filterable: frozenset = frozenset()
    searchable: tuple = ()
    default_sort: str = "created_at"
    default_order: str = "desc"
    memberships: Mapping[str, Membership] = field(default_factory=dict)

    def __post_init__(self):
        check_identifier(self.name)
        for column in self.columns:
            check_identifier(column)

        known = set(self.columns)
        required = {self.primary_key, self.default_sort}
        if self.tenant_column:
            required.add(self.tenant_column)
        for group in (required, self.sortable, set(self.searchable)):
            unknown = set(group) - known
            if unknown:
                raise InvalidColumnError(f"{self.name}: unknown columns {sorted(unknown)}")

        unknown = set(self.filterable) - known - set(self.memberships)
        if unknown:
            raise InvalidColumnError(f"{self.name}: unknown filters {sorted(unknown)}")
        if self.default_order not in SORT_ORDERS:
            raise ValueError(f"default_order must be one of {SORT_ORDERS}")

    @classmethod
    def from_table(cls, table: Table, **options) -> "TableSpec":
        columns = {column.name: column.type for column in table.columns}
        options.setdefault("tenant_column", "tenant_id" if "tenant_id" in columns else None)
        for key in ("sortable", "filterable"):
            if key in options:
                options[key] = frozenset(options[key])
        if "searchable" in options:
            options["searchable"] = tuple(options["searchable"])
        return cls(name=table.name, columns=columns, **options)

    @classmethod
    def from_model(cls, model, **options) -> "TableSpec":
        return cls.from_table(model.__table__, **options)

    def has_column(self, name: str) -> bool:
        return name in self.columns


@dataclass
class Query:
    """Parameterized SQL plus the values for :p1..:pN, in order."""
    sql: str
    parameters: List[Any] = field(default_factory=list)
    types: List[Optional[TypeEngine]] = field(default_factory=list)
    result_columns: Optional[Mapping[str, TypeEngine]] = None

    def statement(self) -> TextClause:
        """Build an executable SQLAlchemy text() construct."""
        stmt = text(self.sql).bindparams(*[
            bindparam(f"p{position}", value, type_=type_)
            for position, (value, type_) in enumerate(zip(self.parameters, self.types), start=1)
        ])
        if self.result_columns:
            stmt = stmt.columns(**self.result_columns)
        return stmt


class _Bindings:
    def __init__(self):
        self.values: List[Any] = []
        self.types: List[Optional[TypeEngine]] = []

    def add(self, value: Any, type_: Optional[TypeEngine] = None) -> str:
        self.values.append(value)
        self.types.append(type_)
        return f":p{len(self.values)}"

    def query(self, sql: str, result_columns=None) -> Query:
        return Query(sql, self.values, self.types, result_columns)


class QueryBuilder:
    """
    Builds SQL for one table.

    The builder emits exactly the LIMIT it is given. Clamping happens in
    RecordStore.find_by_tenant_with_options, the one entry point list
    endpoints are allowed to use.
    """

    def __init__(self, spec: TableSpec, dialect: str = "postgresql"):
        self.spec = spec
        self.dialect = dialect

    # ------------------------------------------------------------------
    # identifiers
    # ------------------------------------------------------------------

    def column(self, name: str) -> str:
        if not self.spec.has_column(name):
            raise InvalidColumnError(f"Unknown column for {self.spec.name}: {name!r}")
        return name

    def resolve_sort(self, sort: Optional[str]) -> str:
        if sort and sort in self.spec.sortable:
            return sort
        return self.spec.default_sort

    def resolve_order(self, order: Optional[str]) -> str:
        order = (order or "").lower()
        if order not in SORT_ORDERS:
            order = self.spec.default_order
        return order.upper()

    # ------------------------------------------------------------------
    # WHERE
    # ------------------------------------------------------------------

    def _condition(self, key: str, value: Any, bindings: _Bindings) -> str:
        membership = self.spec.memberships.get(key)
        if membership is not None:
            related = bindings.add(value, String())
            return (
                f"{self.spec.primary_key} IN (SELECT {membership.owner_column} "
                f"FROM {membership.table} WHERE {membership.related_column} = {related})"
            )

        column = self.column(key)
        type_ = self.spec.columns[column]
        if value is None:
            return f"{column} IS NULL"
        if isinstance(value, (list, tuple, set, frozenset)):
            values = list(value)
            if not values:
                return "1 = 0"
            placeholders = ", ".join(bindings.add(v, type_) for v in values)
            return f"{column} IN ({placeholders})"
        return f"{column} = {bindings.add(value, type_)}"

    def _search_condition(self, search: Optional[str], bindings: _Bindings) -> Optional[str]:
        term = (search or "").strip()
        if not term or not self.spec.searchable:
            return None

        # one parameter, referenced once per searchable column
        pattern = bindings.add(f"%{escape_like(term)}%", String())
        if self.dialect == "postgresql":
            matches = [f"{column} ILIKE {pattern} ESCAPE '\\'" for column in self.spec.searchable]
        else:
            matches = [f"LOWER({column}) LIKE LOWER({pattern}) ESCAPE '\\'" for column in self.spec.searchable]
        return "(" + " OR ".join(matches) + ")"

    def _check_tenant(self, filters: Mapping[str, Any]) -> None:
        tenant_column = self.spec.tenant_column
        value = filters.get(tenant_column) if tenant_column else None
        if not isinstance(value, str) or not value:
            raise TenantIsolationError(
                f"Refusing to build an unscoped statement on {self.spec.name}"
            )

    def where(
        self,
        filters: Optional[Mapping[str, Any]],
        bindings: _Bindings,
        search: Optional[str] = None,
        require_tenant: bool = False,
    ) -> str:
        filters = dict(filters or {})
        if require_tenant:
            self._check_tenant(filters)

        # tenant condition first so it is easy to spot in logs
        keys = sorted(filters, key=lambda key: key != self.spec.tenant_column)
        conditions = [self._condition(key, filters[key], bindings) for key in keys]

        search_condition = self._search_condition(search, bindings)
        if search_condition:
            conditions.append(search_condition)

        if not conditions:
            return ""
        return " WHERE " + " AND ".join(conditions)

    # ------------------------------------------------------------------
    # statements
    # ------------------------------------------------------------------

    def select(
        self,
        filters: Optional[Mapping[str, Any]] = None,
        *,
        search: Optional[str] = None,
        sort: Optional[str] = None,
        order: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        require_tenant: bool = False,
    ) -> Query:
        bindings = _Bindings()
        sql = f"SELECT * FROM {self.spec.name}"
        sql += self.where(filters, bindings, search=search, require_tenant=require_tenant)

        sort_column = self.resolve_sort(sort)
        sql += f" ORDER BY {sort_column} {self.resolve_order(order)}"
        if sort_column != self.spec.primary_key:
            # stable pages when the sort column has duplicates
            sql += f", {self.spec.primary_key} ASC"

        if limit is not None:
            sql += f" LIMIT {bindings.add(int(limit), Integer())}"
        if offset:
            if limit is None and self.dialect == "sqlite":
                sql += " LIMIT -1"
            sql += f" OFFSET {bindings.add(int(offset), Integer())}"

        return bindings.query(sql, self.spec.columns)

    def count(
        self,
        filters: Optional[Mapping[str, Any]] = None,
        *,
        search: Optional[str] = None,
        require_tenant: bool = False,
    ) -> Query:
        bindings = _Bindings()
        sql = f"SELECT COUNT(*) AS total FROM {self.spec.name}"
        sql += self.where(filters, bindings, search=search, require_tenant=require_tenant)
        return bindings.query(sql, {"total": Integer()})

    def select_by_id(self, record_id: Any) -> Query:
        bindings = _Bindings()
        pk = self.spec.primary_key
        placeholder = bindings.add(record_id, self.spec.columns[pk])
        return bindings.query(f"SELECT * FROM {self.spec.name} WHERE {pk} = {placeholder}", self.spec.columns)

    def insert(self, data: Mapping[str, Any]) -> Query:
        if not data:
            raise ValueError(f"Nothing to insert into {self.spec.name}")
        bindings = _Bindings()
        columns = [self.column(name) for name in data]
        placeholders = [bindings.add(data[name], self.spec.columns[name]) for name in columns]
        sql = (
            f"INSERT INTO {self.spec.name} ({', '.join(columns)}) "
            f"VALUES ({', '.join(placeholders)}) RETURNING *"
        )
        return bindings.query(sql, self.spec.columns)

    def update(self, record_id: Any, data: Mapping[str, Any]) -> Query:
        if not data:
            raise ValueError(f"Nothing to update on {self.spec.name}")
        bindings = _Bindings()
        pk = self.spec.primary_key
        assignments = [
            f"{self.column(name)} = {bindings.add(value, self.spec.columns[name])}"
            for name, value in data.items()
        ]
        placeholder = bindings.add(record_id, self.spec.columns[pk])
        sql = f"UPDATE {self.spec.name} SET {', '.join(assignments)} WHERE {pk} = {placeholder} RETURNING *"
        return bindings.query(sql, self.spec.columns)

    def delete(self, record_id: Any) -> Query:
        bindings = _Bindings()
        pk = self.spec.primary_key
        placeholder = bindings.add(record_id, self.spec.columns[pk])
        sql = f"DELETE FROM {self.spec.name} WHERE {pk} = {placeholder} RETURNING {pk}"
        return bindings.query(sql, {pk: self.spec.columns[pk]})

    def delete_where(self, filters: Mapping[str, Any], require_tenant: bool = True) -> Query:
        bindings = _Bindings()
        pk = self.spec.primary_key
        where = self.where(filters, bindings, require_tenant=require_tenant)
        if not where:
            raise ValueError(f"Refusing to delete every row of {self.spec.name}")
        sql = f"DELETE FROM {self.spec.name}{where} RETURNING {pk}"
        return bindings.query(sql, {pk: self.spec.columns[pk]})


def unique(values: Iterable[Any]) -> List[Any]:
    """De-duplicate while keeping first-seen order."""
    seen: Dict[Any, None] = {}
    for value in values:
        seen.setdefault(value, None)
    return list(seen)
