"""Execution engines repositories run statements against."""

from .engine import EngineStore, EngineTransaction
from .protocols import ExecResult, Executor, QueryResult, Store, StoreTransaction
from .sqlite import SQLiteStore, SQLiteTransaction

__all__ = [
    "Store",
    "StoreTransaction",
    "Executor",
    "ExecResult",
    "QueryResult",
    "SQLiteStore",
    "SQLiteTransaction",
    "EngineStore",
    "EngineTransaction",
]
