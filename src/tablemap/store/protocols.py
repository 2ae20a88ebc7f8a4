"""Protocol definitions for the execution engine behind repositories.

Repositories never talk to a driver directly: they hand fully rendered SQL
and positional parameters to a Store. Any object satisfying these protocols
can back a repository, which keeps the dialect layer independent of the
driver that eventually runs the statements.

Example:
    class MyStore:
        def execute(self, sql, params=(), ctx=None) -> ExecResult: ...
        def query(self, sql, params=(), ctx=None) -> QueryResult: ...
        def begin(self, ctx=None) -> StoreTransaction: ...
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol, Sequence, runtime_checkable

if TYPE_CHECKING:
    from ..core.context import Context


# =============================================================================
# Result Types
# =============================================================================


@dataclass
class ExecResult:
    """Outcome of a statement that returns no rows.

    Attributes:
        rowcount: Rows affected, or -1 when the driver cannot tell.
        lastrowid: Identifier generated by the last INSERT, if any.
    """

    rowcount: int = -1
    lastrowid: Any = None


@dataclass
class QueryResult:
    """Rows returned by a query.

    Attributes:
        columns: Column names in result-set order.
        rows: Row tuples aligned with columns.
    """

    columns: list[str] = field(default_factory=list)
    rows: list[tuple[Any, ...]] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.rows)

    def scalar(self) -> Any:
        """First column of the first row, or None when empty."""
        if not self.rows:
            return None
        return self.rows[0][0]


# =============================================================================
# Store Protocols
# =============================================================================


@runtime_checkable
class Executor(Protocol):
    """Anything that can run a statement: a store or an open transaction."""

    def execute(
        self, sql: str, params: Sequence[Any] = (), ctx: Context | None = None
    ) -> ExecResult:
        """Run a statement that returns no rows."""
        ...

    def query(
        self, sql: str, params: Sequence[Any] = (), ctx: Context | None = None
    ) -> QueryResult:
        """Run a statement and fetch every row."""
        ...


@runtime_checkable
class StoreTransaction(Executor, Protocol):
    """An open transaction. Exactly one of commit/rollback ends it."""

    def commit(self) -> None:
        ...

    def rollback(self) -> None:
        ...


@runtime_checkable
class Store(Executor, Protocol):
    """Connection-owning execution engine."""

    def begin(self, ctx: Context | None = None) -> StoreTransaction:
        """Open a transaction."""
        ...

    def connect(self) -> None:
        ...

    def ping(self, ctx: Context | None = None) -> None:
        """Verify the store is reachable; raises StoreError if not."""
        ...

    def close(self) -> None:
        ...
