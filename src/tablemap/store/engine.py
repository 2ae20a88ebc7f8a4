"""Store backed by a SQLAlchemy Engine.

Pooling, driver loading and URL parsing are delegated to SQLAlchemy. The
statements arrive already rendered by a dialect; their markers are rewritten
to the driver's paramstyle and passed to it through ``exec_driver_sql``.
"""

from __future__ import annotations

from typing import Any, Sequence

from loguru import logger
from sqlalchemy import create_engine
from sqlalchemy.engine import Connection, CursorResult, Engine
from sqlalchemy.exc import SQLAlchemyError

from ..core.context import Context
from ..core.exceptions import StoreError, TransactionError
from .errors import wrap_driver_error
from .params import to_paramstyle
from .protocols import ExecResult, QueryResult


def _interrupter(connection: Connection):
    """Build a callback that aborts the statement running on connection."""

    def interrupt() -> None:
        dbapi_connection = connection.connection.dbapi_connection
        for name in ("cancel", "interrupt"):
            method = getattr(dbapi_connection, name, None)
            if callable(method):
                method()
                return
        logger.warning(f"Driver connection {type(dbapi_connection).__name__} cannot be interrupted")

    return interrupt


def _run(
    connection: Connection, sql: str, params: Sequence[Any], ctx: Context, fetch: bool
) -> Any:
    ctx.check()
    stop = ctx.watch(_interrupter(connection))
    try:
        driver_sql, driver_params = to_paramstyle(sql, params, connection.dialect.paramstyle)
        result: CursorResult = connection.exec_driver_sql(driver_sql, driver_params)
        if fetch:
            columns = list(result.keys()) if result.returns_rows else []
            rows = [tuple(row) for row in result.fetchall()] if result.returns_rows else []
            return QueryResult(columns=columns, rows=rows)
        return ExecResult(rowcount=result.rowcount, lastrowid=result.lastrowid)
    except SQLAlchemyError as e:
        raise wrap_driver_error(getattr(e, "orig", None) or e, sql, ctx) from e
    finally:
        stop()


class EngineStore:
    """Store protocol implementation over a SQLAlchemy Engine."""

    def __init__(self, url_or_engine: str | Engine, **engine_options: Any):
        """Initialize store.

        Args:
            url_or_engine: SQLAlchemy database URL or an existing Engine.
            **engine_options: Passed to create_engine() when a URL is given.
        """
        if isinstance(url_or_engine, Engine):
            self._engine: Engine | None = url_or_engine
            self.url = str(url_or_engine.url)
        else:
            self._engine = None
            self.url = url_or_engine
        self._engine_options = engine_options

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise StoreError("Engine not connected")
        return self._engine

    def connect(self) -> None:
        """Create the engine if it does not exist yet."""
        if self._engine is not None:
            return
        try:
            self._engine = create_engine(self.url, **self._engine_options)
        except (SQLAlchemyError, ImportError) as e:
            raise StoreError(f"Failed to create engine: {e}", original=e) from e
        logger.debug(f"Engine store connected: {self._engine.url!r}")

    def close(self) -> None:
        """Dispose of the engine and its pooled connections."""
        if self._engine is not None:
            try:
                self._engine.dispose()
            finally:
                self._engine = None

    def ping(self, ctx: Context | None = None) -> None:
        self.query("SELECT 1", ctx=ctx)

    def execute(
        self, sql: str, params: Sequence[Any] = (), ctx: Context | None = None
    ) -> ExecResult:
        """Execute a statement on a pooled connection and commit it."""
        return self._autocommit(sql, params, ctx, fetch=False)

    def query(
        self, sql: str, params: Sequence[Any] = (), ctx: Context | None = None
    ) -> QueryResult:
        """Execute a query on a pooled connection and fetch every row."""
        return self._autocommit(sql, params, ctx, fetch=True)

    def begin(self, ctx: Context | None = None) -> "EngineTransaction":
        """Check out a connection and begin a transaction on it."""
        ctx = ctx or Context.background()
        ctx.check()
        try:
            connection = self.engine.connect()
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to open connection: {e}", original=e) from e
        try:
            connection.begin()
        except SQLAlchemyError as e:
            connection.close()
            raise StoreError(f"Failed to begin transaction: {e}", original=e) from e
        return EngineTransaction(connection, ctx)

    def _autocommit(
        self, sql: str, params: Sequence[Any], ctx: Context | None, fetch: bool
    ) -> Any:
        ctx = ctx or Context.background()
        try:
            with self.engine.connect() as connection:
                result = _run(connection, sql, params, ctx, fetch)
                connection.commit()
                return result
        except SQLAlchemyError as e:
            raise wrap_driver_error(e, sql, ctx) from e

    def __enter__(self) -> "EngineStore":
        self.connect()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"EngineStore({self.url!r})"


class EngineTransaction:
    """Transaction bound to one checked-out SQLAlchemy connection."""

    def __init__(self, connection: Connection, ctx: Context):
        self._connection = connection
        self._ctx = ctx
        self._finished = False

    @property
    def finished(self) -> bool:
        return self._finished

    def execute(
        self, sql: str, params: Sequence[Any] = (), ctx: Context | None = None
    ) -> ExecResult:
        self._require_open()
        return _run(self._connection, sql, params, ctx or self._ctx, fetch=False)

    def query(
        self, sql: str, params: Sequence[Any] = (), ctx: Context | None = None
    ) -> QueryResult:
        self._require_open()
        return _run(self._connection, sql, params, ctx or self._ctx, fetch=True)

    def commit(self) -> None:
        self._require_open()
        try:
            self._connection.commit()
        except SQLAlchemyError as e:
            raise TransactionError(f"Commit failed: {e}", original=e) from e
        finally:
            self._finish()

    def rollback(self) -> None:
        self._require_open()
        try:
            self._connection.rollback()
        except SQLAlchemyError as e:
            raise TransactionError(f"Rollback failed: {e}", original=e) from e
        finally:
            self._finish()

    def _require_open(self) -> None:
        if self._finished:
            raise TransactionError("Transaction already committed or rolled back")

    def _finish(self) -> None:
        self._finished = True
        self._connection.close()
