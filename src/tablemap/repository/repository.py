"""Generic CRUD repository over registered entity types."""

from __future__ import annotations

import copy
from typing import Any, Callable, Generic, Iterable, TypeVar

from loguru import logger

from ..core.context import Context
from ..core.exceptions import SchemaError, StoreError, TransactionError
from ..dialects.base import Dialect
from ..schema.conversion import convert_value, is_zero
from ..schema.metadata import EntityMetadata, FieldMetadata
from ..schema.registry import EntityRegistry, get_default_registry
from ..store.protocols import ExecResult, Executor, QueryResult
from .query import QueryBuilder
from .rows import marshal_rows

T = TypeVar("T")
R = TypeVar("R")


class Repository(Generic[T]):
    """Persistence operations for one entity type.

    A repository binds together an executor (a store, or an open
    transaction), a dialect, the entity's metadata and a default context.
    It holds no other state and is cheap to copy, which is how
    with_context() and transaction() derive scoped repositories.

    Records may define lifecycle hooks, each called without arguments:
    before_save, before_create, after_create, before_update, after_update,
    after_save, before_delete, after_delete. An exception raised by a
    before_* hook aborts the operation.
    """

    def __init__(
        self,
        store: Executor,
        dialect: Dialect,
        entity_type: type[T],
        *,
        registry: EntityRegistry | None = None,
        context: Context | None = None,
        strict_conversion: bool = False,
        chunk_size: int = 500,
        timeout: float | None = None,
    ):
        """Initialize repository.

        Args:
            store: Store (or transaction) statements are executed on.
            dialect: Dialect used to render statements.
            entity_type: Registered record class.
            registry: Registry to look the type up in; the process-wide
                registry by default.
            context: Default cancellation scope for every call.
            strict_conversion: Raise ConversionError for scanned values
                that cannot be converted instead of skipping them.
            chunk_size: Rows per multi-row INSERT in insert_many().
            timeout: Seconds each statement may run before it is
                interrupted, on top of any deadline carried by context.

        Raises:
            EntityNotRegisteredError: If entity_type was never registered.
        """
        if chunk_size < 1:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        self._registry = registry if registry is not None else get_default_registry()
        self._meta = self._registry.require(entity_type)
        self._store = store
        self._dialect = dialect
        self._ctx = context or Context.background()
        self._strict = strict_conversion
        self._chunk_size = chunk_size
        self._timeout = timeout
        self._in_transaction = False

    @property
    def metadata(self) -> EntityMetadata:
        return self._meta

    @property
    def dialect(self) -> Dialect:
        return self._dialect

    @property
    def context(self) -> Context:
        return self._ctx

    @property
    def in_transaction(self) -> bool:
        return self._in_transaction

    def with_context(self, ctx: Context) -> "Repository[T]":
        """Return a copy of this repository using ctx for every call."""
        return self._derive(_ctx=ctx)

    # =========================================================================
    # Writes
    # =========================================================================

    def save(self, record: T) -> None:
        """Insert or update a record.

        A primary key of None, 0 or "" means the record has not been
        persisted yet and is inserted; any other value updates the row
        with that key.

        Raises:
            SchemaError: If the entity has no primary key.
            StoreError: If the statement fails.
        """
        pk = self._require_primary_key("save")
        self._check_record(record)
        _call_hook(record, "before_save")

        if is_zero(getattr(record, pk.name)):
            self._insert(record)
        else:
            self._update(record, pk)

        _call_hook(record, "after_save")

    def insert_many(self, records: Iterable[T]) -> int:
        """Insert records with multi-row INSERTs inside one transaction.

        Generated keys are not written back onto the records.

        Returns:
            Number of records inserted.
        """
        records = list(records)
        if not records:
            return 0
        for record in records:
            self._check_record(record)
            _call_hook(record, "before_save")
            _call_hook(record, "before_create")

        fields = self._insert_fields()

        def insert_chunks(repo: Repository[T]) -> int:
            for start in range(0, len(records), self._chunk_size):
                chunk = records[start : start + self._chunk_size]
                if not fields:
                    for _ in chunk:
                        repo._execute(repo._insert_sql(fields, 1), [])
                    continue
                params = [value for record in chunk for value in repo._insert_values(record, fields)]
                repo._execute(repo._insert_sql(fields, len(chunk)), params)
            return len(records)

        inserted = self.transaction(insert_chunks)

        for record in records:
            _call_hook(record, "after_create")
            _call_hook(record, "after_save")
        logger.debug(f"Inserted {inserted} {self._meta.name} records")
        return inserted

    def delete(self, record: T) -> int:
        """Delete the row keyed by the record's primary key.

        Returns:
            Number of rows deleted.

        Raises:
            SchemaError: If the entity has no primary key.
        """
        pk = self._require_primary_key("delete")
        self._check_record(record)
        _call_hook(record, "before_delete")
        deleted = self._delete_where_pk(pk, getattr(record, pk.name))
        _call_hook(record, "after_delete")
        return deleted

    def delete_by_id(self, id: Any) -> int:
        """Delete the row with the given primary key."""
        pk = self._require_primary_key("delete")
        return self._delete_where_pk(pk, id)

    def delete_by_ids(self, ids: Iterable[Any]) -> int:
        """Delete every row whose primary key is in ids, in one statement."""
        pk = self._require_primary_key("delete")
        ids = list(ids)
        if not ids:
            return 0
        markers = ", ".join("?" for _ in ids)
        sql = (
            f"DELETE FROM {self._table()} "
            f"WHERE {self._quote(pk.column)} IN ({markers})"
        )
        return self._execute(sql, ids).rowcount

    # =========================================================================
    # Reads
    # =========================================================================

    def find(self) -> QueryBuilder[T]:
        """Start a query over this entity's table."""
        return QueryBuilder(self)

    def find_by_id(self, id: Any) -> T:
        """Load the record with the given primary key.

        Raises:
            SchemaError: If the entity has no primary key.
            NotFoundError: If no row has that key.
        """
        pk = self._require_primary_key("find by id")
        return self.find().where(f"{self._quote(pk.column)} = ?", id).one()

    def count(self) -> int:
        """Count every row in the table."""
        return self.find().count()

    # =========================================================================
    # Transactions
    # =========================================================================

    def transaction(self, fn: Callable[["Repository[T]"], R]) -> R:
        """Run fn inside a store transaction.

        fn receives a repository bound to the transaction. If fn raises,
        the transaction is rolled back and the exception propagates
        unchanged; otherwise it is committed. Calling transaction() on a
        repository that is already inside one runs fn in the enclosing
        transaction.

        Returns:
            Whatever fn returns.

        Raises:
            TransactionError: If commit fails, or rollback fails after fn
                raised (the original exception is kept on body_error).
        """
        if self._in_transaction:
            return fn(self)

        begin = getattr(self._store, "begin", None)
        if begin is None:
            raise TransactionError(f"{type(self._store).__name__} does not support transactions")

        tx = begin(self._ctx)
        scoped = self._derive(_store=tx, _in_transaction=True)
        logger.debug(f"Transaction started for {self._meta.name}")

        try:
            result = fn(scoped)
        except BaseException as body_error:
            try:
                tx.rollback()
            except StoreError as rollback_error:
                raise TransactionError(
                    f"Rollback failed: {rollback_error}",
                    original=rollback_error,
                    body_error=body_error,
                ) from rollback_error
            logger.debug(f"Transaction rolled back for {self._meta.name}: {body_error!r}")
            raise

        try:
            tx.commit()
        except TransactionError:
            raise
        except StoreError as e:
            raise TransactionError(f"Commit failed: {e}", original=e) from e
        logger.debug(f"Transaction committed for {self._meta.name}")
        return result

    # =========================================================================
    # Internals
    # =========================================================================

    def _derive(self, **overrides: Any) -> "Repository[T]":
        derived = copy.copy(self)
        for name, value in overrides.items():
            setattr(derived, name, value)
        return derived

    def _execute(self, sql: str, params: list[Any]) -> ExecResult:
        sql, params = self._bind(sql, params)
        logger.debug(f"Executing SQL: {sql} | args={params!r}")
        return self._store.execute(sql, params, self._call_context())

    def _query(self, sql: str, params: list[Any]) -> QueryResult:
        logger.debug(f"Query SQL: {sql} | args={params!r}")
        return self._store.query(sql, params, self._call_context())

    def _call_context(self) -> Context:
        if self._timeout is None:
            return self._ctx
        return self._ctx.with_timeout(self._timeout)

    def _fetch(self, sql: str, params: list[Any]) -> list[T]:
        return marshal_rows(self._meta, self._query(sql, params), strict=self._strict)

    def _bind(self, sql: str, params: list[Any]) -> tuple[str, list[Any]]:
        sql, _ = self._dialect.bind_placeholders(sql)
        return sql, [self._dialect.bind_value(p) for p in params]

    def _quote(self, name: str) -> str:
        return self._dialect.quote_identifier(name)

    def _table(self) -> str:
        return self._quote(self._meta.table_name)

    def _require_primary_key(self, operation: str) -> FieldMetadata:
        if self._meta.primary_key is None:
            raise SchemaError(f"cannot {operation} without a primary key", entity=self._meta.name)
        return self._meta.primary_key

    def _check_record(self, record: Any) -> None:
        if not isinstance(record, self._meta.entity_type):
            raise TypeError(
                f"expected {self._meta.name} record, got {type(record).__name__}"
            )

    def _insert_fields(self) -> list[FieldMetadata]:
        return [
            f for f in self._meta.columns if not (f.is_primary_key and f.is_auto_increment)
        ]

    def _insert_values(self, record: T, fields: list[FieldMetadata]) -> list[Any]:
        return [getattr(record, f.name) for f in fields]

    def _insert_sql(self, fields: list[FieldMetadata], rows: int) -> str:
        head = f"INSERT INTO {self._table()}"
        if not fields:
            return f"{head} {self._dialect.default_values_clause()}"
        columns = ", ".join(self._quote(f.column) for f in fields)
        row = "(" + ", ".join("?" for _ in fields) + ")"
        values = ", ".join(row for _ in range(rows))
        return f"{head} ({columns}) VALUES {values}"

    def _insert(self, record: T) -> None:
        _call_hook(record, "before_create")

        fields = self._insert_fields()
        sql = self._insert_sql(fields, 1)
        params = self._insert_values(record, fields)
        returning = self._dialect.insert_returning(self._meta)

        if returning:
            sql, params = self._bind(sql + returning, params)
            new_id = self._query(sql, params).scalar()
        else:
            new_id = self._execute(sql, params).lastrowid

        pk = self._meta.primary_key
        if self._meta.has_auto_increment_key and new_id is not None:
            object.__setattr__(record, pk.name, convert_value(new_id, pk.native_type))

        _call_hook(record, "after_create")

    def _update(self, record: T, pk: FieldMetadata) -> None:
        _call_hook(record, "before_update")

        fields = [f for f in self._meta.columns if not f.is_primary_key]
        if fields:
            assignments = ", ".join(f"{self._quote(f.column)} = ?" for f in fields)
            sql = (
                f"UPDATE {self._table()} SET {assignments} "
                f"WHERE {self._quote(pk.column)} = ?"
            )
            params = [getattr(record, f.name) for f in fields]
            params.append(getattr(record, pk.name))
            result = self._execute(sql, params)
            if result.rowcount == 0:
                logger.debug(f"Update of {self._meta.name} matched no rows")

        _call_hook(record, "after_update")

    def _delete_where_pk(self, pk: FieldMetadata, value: Any) -> int:
        sql = f"DELETE FROM {self._table()} WHERE {self._quote(pk.column)} = ?"
        return self._execute(sql, [value]).rowcount

    def __repr__(self) -> str:
        return f"Repository({self._meta.name}, dialect={self._dialect.name!r})"


def _call_hook(record: Any, name: str) -> None:
    hook = getattr(record, name, None)
    if callable(hook):
        hook()
