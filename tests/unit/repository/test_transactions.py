"""Tests for Repository.transaction()."""

import pytest

from tablemap.core.exceptions import StoreError, TransactionError
from tablemap.repository import Repository
from tests.fakes import User


class Boom(Exception):
    pass


class TestTransactionsOnSQLite:
    """Atomicity against a real database."""

    def test_commit_on_success(self, user_repo):
        def body(repo: Repository) -> int:
            repo.save(User(name="A", email="a@example.com"))
            repo.save(User(name="B", email="b@example.com"))
            return repo.count()

        assert user_repo.transaction(body) == 2
        assert user_repo.count() == 2

    def test_rollback_on_error(self, user_repo):
        """Nothing written inside a failed transaction is visible afterwards."""

        def body(repo: Repository) -> None:
            repo.save(User(name="A", email="a@example.com"))
            raise Boom()

        with pytest.raises(Boom):
            user_repo.transaction(body)

        assert user_repo.count() == 0

    def test_failing_insert_rolls_back_earlier_insert(self, user_repo):
        """A unique violation on the second insert undoes the first."""

        def body(repo: Repository) -> None:
            repo.save(User(name="A", email="same@example.com"))
            repo.save(User(name="B", email="same@example.com"))

        with pytest.raises(StoreError):
            user_repo.transaction(body)

        assert user_repo.count() == 0

    def test_scoped_repository_is_in_transaction(self, user_repo):
        seen = user_repo.transaction(lambda repo: repo.in_transaction)

        assert seen is True
        assert not user_repo.in_transaction

    def test_nested_call_joins_outer_transaction(self, user_repo):
        def inner(repo: Repository) -> None:
            repo.save(User(name="B", email="b@example.com"))

        def outer(repo: Repository) -> None:
            repo.save(User(name="A", email="a@example.com"))
            repo.transaction(inner)
            raise Boom()

        with pytest.raises(Boom):
            user_repo.transaction(outer)

        assert user_repo.count() == 0


class TestTransactionFailures:
    """Commit and rollback failures, using the recording store."""

    @pytest.fixture
    def repo(self, recording_store, dialect, registry) -> Repository:
        return Repository(recording_store, dialect, User, registry=registry)

    def test_statement_order(self, repo, recording_store):
        repo.transaction(lambda r: r.save(User(name="A", email="a@x")))

        assert recording_store.sql[0] == "BEGIN"
        assert recording_store.sql[1].startswith('INSERT INTO "users"')
        assert recording_store.sql[2] == "COMMIT"

    def test_body_error_rolls_back_and_propagates(self, repo, recording_store):
        def body(r: Repository) -> None:
            raise Boom("body")

        with pytest.raises(Boom, match="body"):
            repo.transaction(body)

        assert recording_store.sql == ["BEGIN", "ROLLBACK"]

    def test_commit_failure(self, repo, recording_store):
        recording_store.fail_commit = True

        with pytest.raises(TransactionError, match="Commit failed"):
            repo.transaction(lambda r: None)

    def test_rollback_failure_carries_body_error(self, repo, recording_store):
        recording_store.fail_rollback = True
        body_error = Boom("body")

        def body(r: Repository) -> None:
            raise body_error

        with pytest.raises(TransactionError) as exc_info:
            repo.transaction(body)

        assert exc_info.value.body_error is body_error
        assert exc_info.value.__cause__ is not None
