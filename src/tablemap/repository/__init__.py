"""Repositories, query building and row marshaling."""

from .query import QueryBuilder
from .repository import Repository
from .rows import marshal_rows, new_record

__all__ = ["Repository", "QueryBuilder", "marshal_rows", "new_record"]
