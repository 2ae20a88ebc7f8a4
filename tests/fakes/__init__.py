"""Test fakes and sample entities.

Example:
    from tests.fakes import RecordingStore, User

    store = RecordingStore()
    repo = Repository(store, PostgresDialect(), User, registry=registry)
    repo.save(User(name="Ada"))
    assert store.last[0].startswith("INSERT")
"""

from .entities import Account, AuditEntry, Hooked, Post, Status, Tag, User
from .store import RecordingStore, RecordingTransaction

__all__ = [
    "Account",
    "AuditEntry",
    "Hooked",
    "Post",
    "Status",
    "Tag",
    "User",
    "RecordingStore",
    "RecordingTransaction",
]
