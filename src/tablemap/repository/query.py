"""Fluent SELECT builder returned by Repository.find()."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Generic, Iterable, TypeVar

from ..core.exceptions import NotFoundError, SchemaError

if TYPE_CHECKING:
    from .repository import Repository

T = TypeVar("T")


class QueryBuilder(Generic[T]):
    """Accumulates conditions and ordering, then runs a single SELECT.

    Conditions are SQL fragments using ``?`` for parameters. They are
    rewritten to the dialect's placeholder syntax when the statement is
    rendered, numbered in textual order so they line up with the
    arguments.

    Example:
        users = (
            repo.find()
            .where("age >= ?", 18)
            .where_in("status", ["active", "pending"])
            .order_by("name")
            .limit(10)
            .all()
        )
    """

    def __init__(self, repository: Repository[T]):
        self._repo = repository
        self._conditions: list[str] = []
        self._args: list[Any] = []
        self._or_conditions: list[str] = []
        self._or_args: list[Any] = []
        self._distinct = False
        self._group_by: list[str] = []
        self._having: list[str] = []
        self._having_args: list[Any] = []
        self._includes: list[str] = []
        self._order: list[str] = []
        self._limit: int | None = None
        self._offset: int | None = None

    # =========================================================================
    # Conditions
    # =========================================================================

    def where(self, condition: str, *args: Any) -> "QueryBuilder[T]":
        """AND a free-form condition onto the query."""
        self._conditions.append(condition)
        self._args.extend(args)
        return self

    def or_where(self, condition: str, *args: Any) -> "QueryBuilder[T]":
        """OR a condition against everything ANDed so far."""
        self._or_conditions.append(condition)
        self._or_args.extend(args)
        return self

    def where_in(self, column: str, values: Iterable[Any]) -> "QueryBuilder[T]":
        values = list(values)
        if not values:
            # Nothing can match an empty set
            return self.where("1 = 0")
        markers = ", ".join("?" for _ in values)
        return self.where(f"{self._column(column)} IN ({markers})", *values)

    def where_not_in(self, column: str, values: Iterable[Any]) -> "QueryBuilder[T]":
        values = list(values)
        if not values:
            return self
        markers = ", ".join("?" for _ in values)
        return self.where(f"{self._column(column)} NOT IN ({markers})", *values)

    def where_between(self, column: str, low: Any, high: Any) -> "QueryBuilder[T]":
        return self.where(f"{self._column(column)} BETWEEN ? AND ?", low, high)

    def where_like(self, column: str, pattern: str) -> "QueryBuilder[T]":
        return self.where(f"{self._column(column)} LIKE ?", pattern)

    def where_null(self, column: str) -> "QueryBuilder[T]":
        return self.where(f"{self._column(column)} IS NULL")

    def where_not_null(self, column: str) -> "QueryBuilder[T]":
        return self.where(f"{self._column(column)} IS NOT NULL")

    # =========================================================================
    # Shaping
    # =========================================================================

    def distinct(self) -> "QueryBuilder[T]":
        self._distinct = True
        return self

    def group_by(self, expression: str) -> "QueryBuilder[T]":
        """Append a GROUP BY expression."""
        self._group_by.append(expression)
        return self

    def having(self, condition: str, *args: Any) -> "QueryBuilder[T]":
        """AND a condition onto the HAVING clause.

        Its arguments are bound after every WHERE argument.
        """
        self._having.append(condition)
        self._having_args.extend(args)
        return self

    def with_(self, *relations: str) -> "QueryBuilder[T]":
        """Flag relation attributes the caller wants alongside the records.

        Relations are not loaded; the names are kept on ``includes``.

        Raises:
            SchemaError: If a name is not a relation of the entity.
        """
        meta = self._repo.metadata
        known = {f.name for f in meta.relations}
        for name in relations:
            if name not in known:
                raise SchemaError(f"unknown relation {name!r}", entity=meta.name)
            if name not in self._includes:
                self._includes.append(name)
        return self

    include = with_

    @property
    def includes(self) -> tuple[str, ...]:
        return tuple(self._includes)

    def order_by(self, expression: str) -> "QueryBuilder[T]":
        """Append an ORDER BY expression, e.g. "created_at DESC"."""
        self._order.append(expression)
        return self

    def limit(self, n: int) -> "QueryBuilder[T]":
        self._limit = _non_negative("limit", n)
        return self

    def offset(self, n: int) -> "QueryBuilder[T]":
        self._offset = _non_negative("offset", n)
        return self

    # =========================================================================
    # Execution
    # =========================================================================

    def all(self) -> list[T]:
        """Run the query and marshal every row."""
        sql, params = self.to_sql()
        return self._repo._fetch(sql, params)

    def one(self) -> T:
        """Run the query with LIMIT 1.

        Raises:
            NotFoundError: If no row matches.
        """
        record = self.first()
        if record is None:
            raise NotFoundError(self._repo.metadata.table_name)
        return record

    def first(self) -> T | None:
        """Run the query with LIMIT 1, returning None when nothing matches."""
        sql, params = self._render(self._select_head(), limit=1, offset=self._offset)
        records = self._repo._fetch(sql, params)
        return records[0] if records else None

    def count(self) -> int:
        """Count matching rows, ignoring ordering and pagination.

        A grouped query counts its groups.
        """
        if self._group_by:
            inner = self._clauses(f"SELECT 1 FROM {self._table()}")
            head = f"SELECT COUNT(*) FROM ({' '.join(inner)}) AS grouped_rows"
            sql, params = self._finish([head])
        else:
            head = f"SELECT COUNT(*) FROM {self._table()}"
            sql, params = self._render(head, ordered=False)
        return int(self._repo._query(sql, params).scalar() or 0)

    def exists(self) -> bool:
        """Whether at least one row matches."""
        head = f"SELECT 1 FROM {self._table()}"
        sql, params = self._render(head, ordered=False, limit=1)
        return len(self._repo._query(sql, params)) > 0

    def to_sql(self) -> tuple[str, list[Any]]:
        """Render the SELECT statement and its bound parameters."""
        return self._render(self._select_head(), limit=self._limit, offset=self._offset)

    # =========================================================================
    # Rendering
    # =========================================================================

    def _column(self, name: str) -> str:
        meta = self._repo.metadata
        field = meta.field_for_column(name) or meta.field_named(name)
        column = field.column if field is not None and not field.is_relation else name
        return self._repo.dialect.quote_identifier(column)

    def _table(self) -> str:
        return self._repo.dialect.quote_identifier(self._repo.metadata.table_name)

    def _select_head(self) -> str:
        dialect = self._repo.dialect
        columns = ", ".join(dialect.quote_identifier(f.column) for f in self._repo.metadata.columns)
        distinct = "DISTINCT " if self._distinct else ""
        return f"SELECT {distinct}{columns} FROM {self._table()}"

    def _where_clause(self) -> str:
        clause = " AND ".join(self._conditions)
        if self._or_conditions:
            alternatives = " OR ".join(self._or_conditions)
            clause = f"({clause}) OR {alternatives}" if clause else alternatives
        return clause

    def _clauses(self, head: str) -> list[str]:
        parts = [head]

        where = self._where_clause()
        if where:
            parts.append(f"WHERE {where}")

        if self._group_by:
            parts.append("GROUP BY " + ", ".join(self._group_by))

        if self._having:
            parts.append("HAVING " + " AND ".join(self._having))

        return parts

    def _finish(self, parts: list[str]) -> tuple[str, list[Any]]:
        dialect = self._repo.dialect
        sql, _ = dialect.bind_placeholders(" ".join(parts))
        args = (*self._args, *self._or_args, *self._having_args)
        return sql, [dialect.bind_value(arg) for arg in args]

    def _render(
        self,
        head: str,
        *,
        ordered: bool = True,
        limit: int | None = None,
        offset: int | None = None,
    ) -> tuple[str, list[Any]]:
        parts = self._clauses(head)

        if ordered and self._order:
            parts.append("ORDER BY " + ", ".join(self._order))

        paging = self._repo.dialect.limit_clause(limit, offset if ordered else None)
        if paging:
            parts.append(paging)

        return self._finish(parts)

    def __repr__(self) -> str:
        sql, params = self.to_sql()
        return f"QueryBuilder({sql!r}, {params!r})"


def _non_negative(name: str, n: int) -> int:
    if isinstance(n, bool) or not isinstance(n, int) or n < 0:
        raise ValueError(f"{name} must be a non-negative integer, got {n!r}")
    return n
