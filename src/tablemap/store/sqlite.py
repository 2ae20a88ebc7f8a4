"""SQLite store backed by the standard library driver."""

from __future__ import annotations

import sqlite3
import threading
from pathlib import Path
from typing import Any, Sequence

from loguru import logger

from ..core.context import Context
from ..core.exceptions import StoreError, TransactionError
from .errors import wrap_driver_error
from .protocols import ExecResult, QueryResult

MEMORY = ":memory:"


class SQLiteStore:
    """SQLite connection manager implementing the Store protocol.

    A single connection is shared by every caller. It runs in autocommit
    mode; transactions are opened with an explicit BEGIN and hold the
    connection lock until they are committed or rolled back.
    """

    def __init__(self, path: Path | str = MEMORY):
        """Initialize store with path.

        Args:
            path: Path to the SQLite database file, or ":memory:".
        """
        self.path = path if str(path) == MEMORY else Path(path)
        self._connection: sqlite3.Connection | None = None
        self._lock = threading.RLock()

    def connect(self) -> None:
        """Open the database connection."""
        if self._connection is not None:
            return
        try:
            if isinstance(self.path, Path):
                self.path.parent.mkdir(parents=True, exist_ok=True)
            self._connection = sqlite3.connect(
                str(self.path), isolation_level=None, check_same_thread=False
            )
            self._connection.execute("PRAGMA foreign_keys = ON")
        except (sqlite3.Error, OSError) as e:
            self._connection = None
            raise StoreError(f"Failed to connect to database: {e}", original=e) from e
        logger.debug(f"SQLite store connected: {self.path}")

    def close(self) -> None:
        """Close database connection."""
        if self._connection:
            try:
                self._connection.close()
            except sqlite3.Error as e:
                raise StoreError(f"Failed to close database: {e}", original=e) from e
            finally:
                self._connection = None

    def ping(self, ctx: Context | None = None) -> None:
        """Run a trivial query to verify the connection."""
        self.query("SELECT 1", ctx=ctx)

    def execute(
        self, sql: str, params: Sequence[Any] = (), ctx: Context | None = None
    ) -> ExecResult:
        """Execute a statement that returns no rows.

        Raises:
            StoreError: If the store is not connected or the statement fails.
            CancelledError: If ctx is cancelled or expires first.
        """
        return self._run(sql, params, ctx, fetch=False)

    def query(
        self, sql: str, params: Sequence[Any] = (), ctx: Context | None = None
    ) -> QueryResult:
        """Execute a query and fetch every row."""
        return self._run(sql, params, ctx, fetch=True)

    def begin(self, ctx: Context | None = None) -> "SQLiteTransaction":
        """Open a transaction holding the connection until it is resolved.

        Raises:
            StoreError: If BEGIN fails.
        """
        ctx = ctx or Context.background()
        ctx.check()
        self._lock.acquire()
        try:
            self._run("BEGIN", (), ctx, fetch=False)
        except BaseException:
            self._lock.release()
            raise
        return SQLiteTransaction(self, ctx)

    def _require_connection(self) -> sqlite3.Connection:
        if self._connection is None:
            raise StoreError("Database not connected")
        return self._connection

    def _run(self, sql: str, params: Sequence[Any], ctx: Context | None, fetch: bool) -> Any:
        ctx = ctx or Context.background()
        ctx.check()

        with self._lock:
            connection = self._require_connection()
            ctx.check()
            stop = ctx.watch(connection.interrupt)
            try:
                cursor = connection.execute(sql, tuple(params))
                if fetch:
                    columns = [d[0] for d in cursor.description or ()]
                    rows = [tuple(row) for row in cursor.fetchall()]
                    return QueryResult(columns=columns, rows=rows)
                return ExecResult(rowcount=cursor.rowcount, lastrowid=cursor.lastrowid)
            except sqlite3.Error as e:
                raise wrap_driver_error(e, sql, ctx) from e
            finally:
                stop()

    def __enter__(self) -> "SQLiteStore":
        self.connect()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"SQLiteStore({str(self.path)!r})"


class SQLiteTransaction:
    """Transaction on a SQLiteStore; holds the store lock while open."""

    def __init__(self, store: SQLiteStore, ctx: Context):
        self._store = store
        self._ctx = ctx
        self._finished = False

    @property
    def finished(self) -> bool:
        return self._finished

    def execute(
        self, sql: str, params: Sequence[Any] = (), ctx: Context | None = None
    ) -> ExecResult:
        self._require_open()
        return self._store._run(sql, params, ctx or self._ctx, fetch=False)

    def query(
        self, sql: str, params: Sequence[Any] = (), ctx: Context | None = None
    ) -> QueryResult:
        self._require_open()
        return self._store._run(sql, params, ctx or self._ctx, fetch=True)

    def commit(self) -> None:
        """Commit the transaction.

        Raises:
            TransactionError: If COMMIT fails. The transaction is rolled back.
        """
        self._require_open()
        try:
            self._store._run("COMMIT", (), Context.background(), fetch=False)
        except StoreError as e:
            self._rollback_after_failed_commit()
            raise TransactionError(f"Commit failed: {e}", original=e.original) from e
        finally:
            self._finish()

    def rollback(self) -> None:
        """Roll the transaction back.

        Raises:
            TransactionError: If ROLLBACK fails.
        """
        self._require_open()
        try:
            self._store._run("ROLLBACK", (), Context.background(), fetch=False)
        except StoreError as e:
            raise TransactionError(f"Rollback failed: {e}", original=e.original) from e
        finally:
            self._finish()

    def _rollback_after_failed_commit(self) -> None:
        connection = self._store._connection
        if connection is None or not connection.in_transaction:
            return
        try:
            connection.execute("ROLLBACK")
        except sqlite3.Error as e:
            logger.warning(f"Rollback after failed commit also failed: {e}")

    def _require_open(self) -> None:
        if self._finished:
            raise TransactionError("Transaction already committed or rolled back")

    def _finish(self) -> None:
        self._finished = True
        self._store._lock.release()

